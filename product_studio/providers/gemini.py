"""Gemini image-generation API client."""

import json
from typing import Any, Dict, List, Optional
import httpx

from .error_classifier import classify_exception, classify_response
from ..utils.config import Config
from ..utils.errors import MissingCredential, UnknownServiceError
from ..utils.images import bytes_to_base64
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def image_part(image_bytes: bytes, mime_type: str) -> Dict[str, Any]:
    """Request part carrying inline image data."""
    return {"inlineData": {"mimeType": mime_type, "data": bytes_to_base64(image_bytes)}}


def text_part(text: str) -> Dict[str, Any]:
    """Request part carrying text."""
    return {"text": text}


class GeminiClient:
    """
    Client for the Gemini ``generateContent`` endpoint with image output.
    
    Owns one ``httpx.AsyncClient`` session, opened by ``initialize`` (or
    ``async with``) and released by ``close``.
    """
    
    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Gemini client.
        
        Args:
            api_key: Gemini API key; None is allowed and surfaces as
                MissingCredential on the first call
            model: Image-capable model name
            base_url: API root
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None
    
    @classmethod
    def from_config(
        cls,
        config: Config,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "GeminiClient":
        return cls(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            base_url=config.gemini_base_url,
            timeout=config.timeout_gemini_seconds,
            transport=transport,
        )
    
    async def __aenter__(self) -> "GeminiClient":
        await self.initialize()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    @property
    def has_credential(self) -> bool:
        return bool(self.api_key and self.api_key.strip())
    
    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"
    
    async def initialize(self):
        """Open the HTTP session; calling it again is a no-op."""
        if self.client is not None:
            return
        # The key is sent per request so it can be reconfigured at runtime
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            transport=self.transport,
        )
        logger.info("Gemini session opened", extra={"model": self.model, "timeout": self.timeout})
    
    async def close(self):
        """Release the HTTP session."""
        if self.client is None:
            return
        await self.client.aclose()
        self.client = None
        logger.info("Gemini session closed", extra={"model": self.model})
    
    async def generate_content(self, parts: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Send one multi-part request asking for image and text output.
        
        Args:
            parts: Ordered request parts (see ``image_part``/``text_part``)
            
        Returns:
            Decoded JSON response body
            
        Raises:
            MissingCredential: If no API key is configured
            OperationError: Classified transport or service failure
        """
        if not self.has_credential:
            raise MissingCredential()
        
        if self.client is None:
            raise RuntimeError("GeminiClient session is not open; use initialize() or async with")
        
        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
        }
        
        logger.info(
            f"Submitting to Gemini: {self.model}",
            extra={
                "model": self.model,
                "parts": [sorted(part) for part in parts],
            }
        )
        
        try:
            response = await self.client.post(
                self.endpoint,
                json=payload,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.RequestError as e:
            error = classify_exception(e)
            logger.error(
                f"Gemini request failed: {e.__class__.__name__}",
                extra={"model": self.model, "error_code": error.code.value}
            )
            raise error from e
        
        if response.status_code >= 400:
            error = classify_response(response)
            logger.error(
                f"Gemini returned {response.status_code}",
                extra={
                    "model": self.model,
                    "status": response.status_code,
                    "error_code": error.code.value,
                    "response": response.text[:500],
                }
            )
            raise error
        
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise UnknownServiceError(
                "Image service returned a malformed response",
                status_code=response.status_code,
                detail=response.text[:500],
            ) from e
