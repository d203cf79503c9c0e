# app/core/exceptions.py


class GatewayError(Exception):
    """Base for failures raised while checking a credential.

    These never reach the HTTP layer: each scheme converts them into a deny.
    """


class MalformedRequest(GatewayError):
    """The request did not carry a credential in the shape the scheme expects."""


class UpstreamUnavailable(GatewayError):
    """A remote token check failed, timed out or returned an unusable answer."""
