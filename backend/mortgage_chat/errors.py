"""
Error taxonomy for the chat service.

Every failure that reaches a caller is a ChatServiceError subclass carrying
the HTTP status it maps to. The API layer turns them into {"error": ...}.
"""


class ChatServiceError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code}, message={self.message!r})"


class UserNotFoundError(ChatServiceError):
    """User not found"""
    status_code = 404
    code = "USER_NOT_FOUND"


class FAQNotFoundError(ChatServiceError):
    """FAQ not found"""
    status_code = 404
    code = "FAQ_NOT_FOUND"


class UnauthorizedError(ChatServiceError):
    """Unauthorized"""
    status_code = 401
    code = "UNAUTHORIZED"


class CorruptDataError(ChatServiceError):
    """Stored data could not be decoded"""
    status_code = 500
    code = "CORRUPT_DATA"


class PersistenceError(ChatServiceError):
    """Failed to persist data"""
    status_code = 500
    code = "PERSISTENCE_ERROR"


class CompletionError(ChatServiceError):
    """Completion service request failed"""
    status_code = 502
    code = "UPSTREAM_ERROR"


class CompletionTimeoutError(CompletionError):
    """Completion service timed out"""
    status_code = 504
    code = "UPSTREAM_TIMEOUT"


class ProviderConfigurationError(ChatServiceError):
    """Completion provider is not configured"""
    status_code = 500
    code = "PROVIDER_CONFIGURATION"


class TranscriptionError(ChatServiceError):
    """Transcription failed"""
    status_code = 500
    code = "TRANSCRIPTION_ERROR"


class TranscriptionTimeoutError(TranscriptionError):
    """Transcription timed out"""
    status_code = 504
    code = "TRANSCRIPTION_TIMEOUT"


class TranscriptionEmptyError(TranscriptionError):
    """No speech was transcribed"""
    status_code = 500
    code = "TRANSCRIPTION_EMPTY"
