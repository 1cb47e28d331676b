class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SessionNotFoundError(AppError):
    """Raised when an edit or removal targets a session missing from the placement."""
    def __init__(self, session_id: str):
        super().__init__(
            f"Placed session with id {session_id} not found",
            status_code=404,
            details={"session_id": session_id},
        )

class ConfigurationError(AppError):
    """Raised when the slot calendar or settings are invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
