from typing import Optional


class PortalError(Exception):
    """Base class for failures surfaced by the portal's backend clients."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationDenied(PortalError):
    """The backend answered 403. `message` is already fit to show to the operator."""


class RequestFailed(PortalError):
    """
    Any non-success answer other than 403 (and 404 on fetch-by-id).

    Carries the status code and the raw response body for support diagnostics.
    `status_code` is None when the request never got a response.
    """

    def __init__(self, operation: str, status_code: Optional[int], body: str = ""):
        self.operation = operation
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"Failed to {operation}: {body}"
        elif body:
            message = f"Failed to {operation}: {status_code}. {body}"
        else:
            message = f"Failed to {operation}: {status_code}"
        super().__init__(message)


class TokenRequestFailed(PortalError):
    """AuthServer's token endpoint rejected the grant or was unreachable."""

    def __init__(self, status_code: Optional[int], body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Token request failed: {status_code} {body}".strip())
