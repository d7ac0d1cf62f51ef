"""Enumerations for the product studio."""

from enum import Enum


class ModelInteraction(str, Enum):
    """How the person in the auxiliary model image relates to the product."""
    WEARING = "wearing"
    HOLDING = "holding"
    POSING = "posing"


class WatermarkPosition(str, Enum):
    """Anchor corner/edge for the burned-in watermark."""
    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"


class OrchestratorState(str, Enum):
    """Which operation, if any, the orchestrator is running."""
    IDLE = "idle"
    GENERATING = "generating"
    BATCH_RUNNING = "batch_running"
    REFINING = "refining"


class BatchItemStatus(str, Enum):
    """Outcome of one source image within a batch run."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


class ErrorCode(str, Enum):
    """Stable identifiers for every classified operation failure."""
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    QUOTA_EXCEEDED = "quota_exceeded"
    RATE_LIMITED = "rate_limited"
    MODEL_RETURNED_TEXT = "model_returned_text"
    EMPTY_MODEL_RESPONSE = "empty_model_response"
    IMAGE_DECODE_ERROR = "image_decode_error"
    RENDER_SURFACE_UNAVAILABLE = "render_surface_unavailable"
    OPERATION_IN_PROGRESS = "operation_in_progress"
    EMPTY_EDIT_INSTRUCTION = "empty_edit_instruction"
    ARTIFACT_NOT_FOUND = "artifact_not_found"
    SERVICE_UNAVAILABLE = "service_unavailable"
    REQUEST_REJECTED = "request_rejected"
    UNKNOWN = "unknown"
