class APIError(Exception):
    """Base API error with status code, message and machine-readable code"""

    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message, status_code=400, payload=None, error_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload
        if error_code:
            self.error_code = error_code

    def to_dict(self):
        rv = dict(self.payload or ())
        rv["success"] = False
        rv["message"] = self.message
        rv["error"] = self.error_code
        return rv


class ValidationError(APIError):
    """Invalid request input"""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message, status_code=400, errors=None):
        super().__init__(message, status_code, payload={"errors": errors} if errors else None)
        self.errors = errors


class QueryTooShortError(ValidationError):
    """Search text shorter than the minimum length after trimming"""

    error_code = "QUERY_TOO_SHORT"

    def __init__(
        self, message="Search query must contain at least 2 characters."
    ):
        super().__init__(message)


class AuthError(APIError):
    """Authentication/authorization errors"""

    error_code = "UNAUTHORIZED"

    def __init__(self, message="Authentication required", status_code=401):
        super().__init__(message, status_code)


class NotFoundError(APIError):
    """Resource not found errors"""

    error_code = "NOT_FOUND"

    def __init__(self, message="Resource not found", status_code=404, error_code=None):
        super().__init__(message, status_code, error_code=error_code)


class SearchFailedError(APIError):
    """A catalog or shop lookup failed while serving a discovery request"""

    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message="Search failed", status_code=500):
        super().__init__(message, status_code)
