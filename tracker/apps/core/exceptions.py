"""Application-level exceptions shared by the order and tracking apps."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class InvalidTransition(AppError):
    """Raised when the order state machine rejects a status change."""

    def __init__(self, current: str, target: str | None = None):
        self.current = current
        self.target = target
        if target is None:
            message = f"Order in status '{current}' cannot advance"
        else:
            message = f"Cannot move order from '{current}' to '{target}'"
        super().__init__(message, code="INVALID_TRANSITION")


class StoreUnavailable(AppError):
    """Raised when the order store cannot be read or written."""

    def __init__(self, message: str):
        super().__init__(message, code="STORE_UNAVAILABLE")


class IdentityUnavailable(AppError):
    """Raised when the user-identity service cannot be reached."""

    def __init__(self, message: str):
        super().__init__(message, code="IDENTITY_UNAVAILABLE")


class CacheUnavailable(AppError):
    """Raised inside the cache layer only; callers never see it."""

    def __init__(self, message: str):
        super().__init__(message, code="CACHE_UNAVAILABLE")
