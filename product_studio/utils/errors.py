"""Custom exception classes for the product studio."""

from typing import Optional

from ..models.enums import ErrorCode


class ProductStudioError(Exception):
    """Base exception for all studio errors."""
    pass


class ConfigurationError(ProductStudioError):
    """Configuration or initialization errors."""
    pass


class OperationError(ProductStudioError):
    """
    A classified failure of a studio operation.
    
    ``code`` identifies the failure for the message table, ``hard_stop``
    tells a batch run to halt instead of moving on to the next image.
    """
    code: ErrorCode = ErrorCode.UNKNOWN
    hard_stop: bool = False
    recoverable: bool = True
    default_message: str = "Operation failed"
    
    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message or self.default_message)


class MissingCredential(OperationError):
    """No service credential is configured."""
    code = ErrorCode.MISSING_CREDENTIAL
    hard_stop = True
    recoverable = False
    default_message = "No API key configured for the image service"


class InvalidCredential(OperationError):
    """The service rejected the configured credential."""
    code = ErrorCode.INVALID_CREDENTIAL
    hard_stop = True
    recoverable = False
    default_message = "The image service rejected the API key"


class QuotaExceeded(OperationError):
    """The account's quota for the service is exhausted."""
    code = ErrorCode.QUOTA_EXCEEDED
    hard_stop = True
    default_message = "Image service quota exceeded"


class RateLimited(OperationError):
    """Too many requests in a short window."""
    code = ErrorCode.RATE_LIMITED
    hard_stop = True
    default_message = "Image service rate limit exceeded"
    
    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = 429,
        detail: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        self.retry_after = retry_after
        if message is None and retry_after:
            message = f"{self.default_message}, retry after {retry_after:g}s"
        super().__init__(message, status_code=status_code, detail=detail)


class ModelReturnedTextInsteadOfImage(OperationError):
    """The model answered with text (usually a refusal) and no image."""
    code = ErrorCode.MODEL_RETURNED_TEXT
    default_message = "The model returned text instead of an image"
    
    def __init__(self, text: str):
        self.text = text
        super().__init__(f"{self.default_message}: {text}", detail=text)


class EmptyModelResponse(OperationError):
    """The response carried neither an image nor text."""
    code = ErrorCode.EMPTY_MODEL_RESPONSE
    default_message = "No image data found in the model response"


class ImageDecodeError(OperationError):
    """Image bytes could not be decoded."""
    code = ErrorCode.IMAGE_DECODE_ERROR
    default_message = "Failed to decode image"


class RenderSurfaceUnavailable(OperationError):
    """No drawable surface could be prepared for compositing."""
    code = ErrorCode.RENDER_SURFACE_UNAVAILABLE
    default_message = "Could not prepare a drawing surface"


class OperationAlreadyInProgress(OperationError):
    """Another generation, batch or refinement is still running."""
    code = ErrorCode.OPERATION_IN_PROGRESS
    default_message = "Another operation is already in progress"


class EmptyEditInstruction(OperationError):
    """A refinement was requested without an edit instruction."""
    code = ErrorCode.EMPTY_EDIT_INSTRUCTION
    default_message = "Edit instruction must not be empty"


class ArtifactNotFound(OperationError):
    """There is no generated image for the requested source."""
    code = ErrorCode.ARTIFACT_NOT_FOUND
    default_message = "No generated image exists for this source"


class ServiceUnavailable(OperationError):
    """Network failure or server-side error; safe to try again."""
    code = ErrorCode.SERVICE_UNAVAILABLE
    default_message = "The image service is temporarily unavailable"


class RequestRejected(OperationError):
    """The service refused the request for a reason other than auth or quota."""
    code = ErrorCode.REQUEST_REJECTED
    default_message = "The image service rejected the request"


class UnknownServiceError(OperationError):
    """A failure whose payload could not be interpreted."""
    code = ErrorCode.UNKNOWN
    default_message = "Unexpected error from the image service"
