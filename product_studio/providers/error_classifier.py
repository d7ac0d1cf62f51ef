"""
Classification of raw service failures into typed operation errors.

The image service reports failures as ``{"error": {"code", "status",
"message", "details": [...]}}``. Classification uses the HTTP status, the
RPC status and the typed ``details`` entries (``ErrorInfo.reason``,
``QuotaFailure``, ``RetryInfo``); message text is carried along for
display but never inspected.
"""

import json
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..utils.errors import (
    InvalidCredential,
    OperationError,
    QuotaExceeded,
    RateLimited,
    RequestRejected,
    ServiceUnavailable,
    UnknownServiceError,
)

ERROR_INFO_TYPE = "type.googleapis.com/google.rpc.ErrorInfo"
QUOTA_FAILURE_TYPE = "type.googleapis.com/google.rpc.QuotaFailure"
RETRY_INFO_TYPE = "type.googleapis.com/google.rpc.RetryInfo"

CREDENTIAL_REASONS = {
    "API_KEY_INVALID",
    "API_KEY_EXPIRED",
    "API_KEY_SERVICE_BLOCKED",
    "ACCESS_TOKEN_EXPIRED",
    "CREDENTIALS_MISSING",
}
CREDENTIAL_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}
TRANSIENT_STATUSES = {"UNAVAILABLE", "INTERNAL", "DEADLINE_EXCEEDED", "ABORTED"}


def classify_exception(exc: BaseException) -> OperationError:
    """
    Map any failure raised while talking to the service to an OperationError.
    
    Already-classified errors pass through unchanged.
    """
    if isinstance(exc, OperationError):
        return exc
    
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_response(exc.response)
    
    if isinstance(exc, httpx.RequestError):
        # Timeouts, DNS failures, dropped connections
        return ServiceUnavailable(
            f"Could not reach the image service: {exc.__class__.__name__}",
            detail=str(exc) or None,
        )
    
    return UnknownServiceError(detail=str(exc) or exc.__class__.__name__)


def classify_response(response: httpx.Response) -> OperationError:
    """Classify a non-success HTTP response."""
    try:
        body: Any = response.json()
    except (json.JSONDecodeError, ValueError):
        body = response.text
    
    return classify_error_payload(
        status_code=response.status_code,
        body=body,
        headers=response.headers,
    )


def classify_error_payload(
    status_code: Optional[int],
    body: Any,
    headers: Optional[Mapping[str, str]] = None,
) -> OperationError:
    """
    Classify an error payload.
    
    Args:
        status_code: HTTP status, if known
        body: Parsed JSON body, or raw text when the body was not JSON
        headers: Response headers (used for ``Retry-After``)
        
    Returns:
        The matching OperationError subclass instance
    """
    error = _extract_error_object(body)
    
    if error is None:
        return _classify_by_status(status_code, body, headers)
    
    http_code = status_code if status_code is not None else _as_int(error.get("code"))
    rpc_status = str(error.get("status") or "").upper()
    message = str(error.get("message") or "").strip() or None
    details = _details(error)
    
    reasons = {
        str(d.get("reason") or "").upper()
        for d in details
        if d.get("@type") == ERROR_INFO_TYPE
    }
    quota_failures = [d for d in details if d.get("@type") == QUOTA_FAILURE_TYPE]
    retry_after = _retry_delay(details, headers)
    
    if reasons & CREDENTIAL_REASONS or rpc_status in CREDENTIAL_STATUSES or http_code in (401, 403):
        return InvalidCredential(status_code=http_code, detail=message)
    
    if rpc_status == "RESOURCE_EXHAUSTED" or http_code == 429:
        if _is_daily_quota(quota_failures) or (quota_failures and retry_after is None):
            return QuotaExceeded(status_code=http_code, detail=message)
        return RateLimited(status_code=http_code, detail=message, retry_after=retry_after)
    
    if rpc_status in TRANSIENT_STATUSES or (http_code is not None and http_code >= 500):
        return ServiceUnavailable(status_code=http_code, detail=message)
    
    if http_code is not None and 400 <= http_code < 500:
        return RequestRejected(message, status_code=http_code, detail=message)
    
    return UnknownServiceError(status_code=http_code, detail=message)


def _classify_by_status(
    status_code: Optional[int],
    body: Any,
    headers: Optional[Mapping[str, str]],
) -> OperationError:
    """Fallback for payloads without the structured error envelope."""
    detail = body.strip()[:500] if isinstance(body, str) and body.strip() else None
    
    if status_code in (401, 403):
        return InvalidCredential(status_code=status_code, detail=detail)
    if status_code == 429:
        return RateLimited(
            status_code=status_code,
            detail=detail,
            retry_after=_retry_delay([], headers),
        )
    if status_code is not None and status_code >= 500:
        return ServiceUnavailable(status_code=status_code, detail=detail)
    if status_code is not None and 400 <= status_code < 500:
        return RequestRejected(status_code=status_code, detail=detail)
    return UnknownServiceError(status_code=status_code, detail=detail)


def _extract_error_object(body: Any) -> Optional[Dict[str, Any]]:
    # Some gateways wrap the envelope in a single-element list
    if isinstance(body, list) and len(body) == 1:
        body = body[0]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"]
    return None


def _details(error: Dict[str, Any]) -> List[Dict[str, Any]]:
    details = error.get("details")
    if not isinstance(details, list):
        return []
    return [d for d in details if isinstance(d, dict)]


def _is_daily_quota(quota_failures: List[Dict[str, Any]]) -> bool:
    for failure in quota_failures:
        for violation in failure.get("violations") or []:
            if not isinstance(violation, dict):
                continue
            quota_id = str(violation.get("quotaId") or "")
            if "PerDay" in quota_id:
                return True
    return False


def _retry_delay(
    details: List[Dict[str, Any]],
    headers: Optional[Mapping[str, str]],
) -> Optional[float]:
    for detail in details:
        if detail.get("@type") != RETRY_INFO_TYPE:
            continue
        delay = _parse_duration(detail.get("retryDelay"))
        if delay is not None:
            return delay
    
    if headers is not None:
        header = headers.get("Retry-After") or headers.get("retry-after")
        if header:
            return _parse_duration(header)
    return None


def _parse_duration(value: Any) -> Optional[float]:
    """Parse ``"37s"``, ``"1.5s"`` or a bare number of seconds."""
    if value is None:
        return None
    text = str(value).strip().lower()
    if text.endswith("s"):
        text = text[:-1]
    try:
        seconds = float(text)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
