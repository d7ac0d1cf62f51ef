"""
Human-readable messages for classified operation errors.

The table is keyed by ``ErrorCode`` then locale. Built-in English and
Korean entries can be overridden (or extended with new locales) from a
YAML file shaped like::

    en:
      quota_exceeded: "Out of credits for today."
    ja:
      rate_limited: "..."
"""

from pathlib import Path
from typing import Dict, Optional, Union
import yaml

from ..models.enums import ErrorCode
from .config import Config
from .errors import ConfigurationError, OperationError, RateLimited
from .logger import get_logger

logger = get_logger(__name__)

GENERIC_KEY = "generic"

DEFAULT_MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        ErrorCode.MISSING_CREDENTIAL.value: (
            "No API key is configured. Set GEMINI_API_KEY in your hosting environment and reload."
        ),
        ErrorCode.INVALID_CREDENTIAL.value: (
            "The API key was rejected. Check that it is correct and enabled for image generation."
        ),
        ErrorCode.QUOTA_EXCEEDED.value: (
            "The image service quota has been used up. Wait for it to reset, then try again."
        ),
        ErrorCode.RATE_LIMITED.value: (
            "Too many requests were sent in a short time. Wait a moment, then try again."
        ),
        ErrorCode.MODEL_RETURNED_TEXT.value: (
            "The model answered with text instead of an image: {detail}"
        ),
        ErrorCode.EMPTY_MODEL_RESPONSE.value: (
            "The model did not return an image. Try again or adjust your settings."
        ),
        ErrorCode.IMAGE_DECODE_ERROR.value: (
            "The image could not be read. Showing the unprocessed result instead."
        ),
        ErrorCode.RENDER_SURFACE_UNAVAILABLE.value: (
            "Post-processing is unavailable. Showing the unprocessed result instead."
        ),
        ErrorCode.OPERATION_IN_PROGRESS.value: (
            "Another request is still running. Wait for it to finish."
        ),
        ErrorCode.EMPTY_EDIT_INSTRUCTION.value: "Describe the change you want to make.",
        ErrorCode.ARTIFACT_NOT_FOUND.value: "Generate an image for this product first.",
        ErrorCode.SERVICE_UNAVAILABLE.value: (
            "The image service could not be reached. Check your connection and try again."
        ),
        ErrorCode.REQUEST_REJECTED.value: (
            "The image service rejected the request ({status}). Try a different image or settings."
        ),
        GENERIC_KEY: "Something went wrong while generating the image. Please try again.",
    },
    "ko": {
        ErrorCode.MISSING_CREDENTIAL.value: (
            "API 키가 설정되지 않았습니다. 호스팅 환경의 GEMINI_API_KEY 설정을 확인해주세요."
        ),
        ErrorCode.INVALID_CREDENTIAL.value: "API 키가 유효하지 않습니다. 키를 다시 확인해주세요.",
        ErrorCode.QUOTA_EXCEEDED.value: "사용 한도를 초과했습니다. 한도가 초기화된 후 다시 시도해주세요.",
        ErrorCode.RATE_LIMITED.value: "요청이 너무 많습니다. 잠시 후 다시 시도해주세요.",
        ErrorCode.MODEL_RETURNED_TEXT.value: "모델이 이미지 대신 텍스트를 반환했습니다: {detail}",
        ErrorCode.EMPTY_MODEL_RESPONSE.value: "응답에서 이미지 데이터를 찾을 수 없습니다. 다시 시도해주세요.",
        ErrorCode.IMAGE_DECODE_ERROR.value: "이미지를 읽을 수 없어 원본 결과를 표시합니다.",
        ErrorCode.RENDER_SURFACE_UNAVAILABLE.value: "후처리를 적용할 수 없어 원본 결과를 표시합니다.",
        ErrorCode.OPERATION_IN_PROGRESS.value: "다른 작업이 진행 중입니다. 완료될 때까지 기다려주세요.",
        ErrorCode.EMPTY_EDIT_INSTRUCTION.value: "수정할 내용을 입력해주세요.",
        ErrorCode.ARTIFACT_NOT_FOUND.value: "먼저 이 제품의 이미지를 생성해주세요.",
        ErrorCode.SERVICE_UNAVAILABLE.value: "이미지 서비스에 연결할 수 없습니다. 잠시 후 다시 시도해주세요.",
        ErrorCode.REQUEST_REJECTED.value: "이미지 서비스가 요청을 거부했습니다 ({status}).",
        GENERIC_KEY: "이미지 생성 중 오류가 발생했습니다. 다시 시도해주세요.",
    },
}


class MessageCatalog:
    """Maps classified errors to localized, user-facing text."""
    
    def __init__(
        self,
        messages: Optional[Dict[str, Dict[str, str]]] = None,
        default_locale: str = "en",
    ):
        self.default_locale = default_locale
        self._messages: Dict[str, Dict[str, str]] = {
            locale: dict(table) for locale, table in DEFAULT_MESSAGES.items()
        }
        for locale, table in (messages or {}).items():
            self._messages.setdefault(locale, {}).update(table)
    
    @classmethod
    def from_yaml(cls, path: Union[str, Path], default_locale: str = "en") -> "MessageCatalog":
        """
        Build a catalog with overrides read from a YAML file.
        
        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Message file not found: {path}")
        
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        
        if not isinstance(data, dict) or not all(isinstance(t, dict) for t in data.values()):
            raise ConfigurationError(f"{path} must map locale -> {{code: message}}")
        
        overrides = {
            str(locale): {str(code): str(text) for code, text in table.items()}
            for locale, table in data.items()
        }
        logger.info(
            "Loaded message overrides",
            extra={"path": str(path), "locales": sorted(overrides)}
        )
        return cls(overrides, default_locale=default_locale)
    
    @classmethod
    def from_config(cls, config: Config) -> "MessageCatalog":
        """Catalog for the configured locale, with overrides from MESSAGES_PATH if set."""
        if config.messages_path:
            return cls.from_yaml(config.messages_path, default_locale=config.locale)
        return cls(default_locale=config.locale)
    
    @property
    def locales(self):
        return sorted(self._messages)
    
    def describe(self, error: BaseException, locale: Optional[str] = None) -> str:
        """
        Render a user-facing message for an error.
        
        Unclassified exceptions and codes without a template fall back to
        the generic "please try again" text.
        """
        table = self._table(locale)
        
        if not isinstance(error, OperationError):
            return table[GENERIC_KEY]
        
        template = table.get(error.code.value)
        if template is None:
            return table[GENERIC_KEY]
        
        status = error.status_code if error.status_code is not None else "?"
        try:
            text = template.format(detail=error.detail or "", status=status)
        except (KeyError, IndexError, ValueError):
            text = template
        
        if isinstance(error, RateLimited) and error.retry_after:
            text = f"{text} ({error.retry_after:g}s)"
        
        return text
    
    def _table(self, locale: Optional[str]) -> Dict[str, str]:
        base = dict(self._messages.get(self.default_locale) or DEFAULT_MESSAGES["en"])
        base.setdefault(GENERIC_KEY, DEFAULT_MESSAGES["en"][GENERIC_KEY])
        if locale and locale != self.default_locale and locale in self._messages:
            base.update(self._messages[locale])
        return base
