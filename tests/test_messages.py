"""Test localized error messages."""

import pytest

from product_studio.utils.config import Config
from product_studio.utils.errors import (
    ConfigurationError,
    EmptyEditInstruction,
    ModelReturnedTextInsteadOfImage,
    QuotaExceeded,
    RateLimited,
    RequestRejected,
    UnknownServiceError,
)
from product_studio.utils.messages import DEFAULT_MESSAGES, GENERIC_KEY, MessageCatalog


class TestMessageCatalog:
    """Message lookup, formatting and overrides."""
    
    def test_english_default(self):
        catalog = MessageCatalog()
        
        assert catalog.describe(QuotaExceeded()) == DEFAULT_MESSAGES["en"]["quota_exceeded"]
    
    def test_korean(self):
        catalog = MessageCatalog()
        
        assert catalog.describe(EmptyEditInstruction(), locale="ko") == "수정할 내용을 입력해주세요."
    
    def test_default_locale_setting(self):
        """Catalog-wide default locale applies when none is passed."""
        catalog = MessageCatalog(default_locale="ko")
        
        assert catalog.describe(QuotaExceeded()) == DEFAULT_MESSAGES["ko"]["quota_exceeded"]
    
    def test_unknown_locale_uses_default(self):
        catalog = MessageCatalog()
        
        assert catalog.describe(QuotaExceeded(), locale="fr") == DEFAULT_MESSAGES["en"]["quota_exceeded"]
    
    def test_model_text_included(self):
        """The model's own words are shown to the user."""
        message = MessageCatalog().describe(ModelReturnedTextInsteadOfImage("I can't edit faces."))
        
        assert message.endswith("I can't edit faces.")
    
    def test_status_included(self):
        message = MessageCatalog().describe(RequestRejected("bad", status_code=400))
        
        assert "(400)" in message
    
    def test_retry_after_appended(self):
        message = MessageCatalog().describe(RateLimited(retry_after=12))
        
        assert message.startswith(DEFAULT_MESSAGES["en"]["rate_limited"])
        assert message.endswith("(12s)")
    
    @pytest.mark.parametrize("error", [ValueError("boom"), UnknownServiceError()])
    def test_generic_fallback(self, error):
        """Unclassified errors get the generic retry message."""
        assert MessageCatalog().describe(error) == DEFAULT_MESSAGES["en"][GENERIC_KEY]
    
    def test_override_and_new_locale(self):
        catalog = MessageCatalog({
            "en": {"quota_exceeded": "Out of credits."},
            "de": {"quota_exceeded": "Kontingent erschöpft."},
        })
        
        assert catalog.describe(QuotaExceeded()) == "Out of credits."
        assert catalog.describe(QuotaExceeded(), locale="de") == "Kontingent erschöpft."
        # Codes missing from the new locale come from the default one
        assert catalog.describe(EmptyEditInstruction(), locale="de") == (
            DEFAULT_MESSAGES["en"]["empty_edit_instruction"]
        )
        assert "de" in catalog.locales
    
    def test_stray_braces_left_alone(self):
        catalog = MessageCatalog({"en": {"quota_exceeded": "Quota {used up}"}})
        
        assert catalog.describe(QuotaExceeded()) == "Quota {used up}"
    
    def test_defaults_not_mutated(self):
        MessageCatalog({"en": {"quota_exceeded": "changed"}})
        
        assert MessageCatalog().describe(QuotaExceeded()) != "changed"


class TestMessageFile:
    """Loading overrides from YAML."""
    
    def test_from_yaml(self, tmp_path):
        path = tmp_path / "messages.yaml"
        path.write_text('ko:\n  quota_exceeded: "오늘 한도를 모두 사용했습니다."\n', encoding="utf-8")
        
        catalog = MessageCatalog.from_yaml(path)
        
        assert catalog.describe(QuotaExceeded(), locale="ko") == "오늘 한도를 모두 사용했습니다."
    
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            MessageCatalog.from_yaml(tmp_path / "absent.yaml")
    
    def test_malformed_file(self, tmp_path):
        path = tmp_path / "messages.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        
        with pytest.raises(ConfigurationError):
            MessageCatalog.from_yaml(path)


class TestFromConfig:
    """Catalog built from application config."""
    
    def test_locale_only(self):
        catalog = MessageCatalog.from_config(Config(LOCALE="ko"))
        
        assert catalog.default_locale == "ko"
        assert catalog.describe(QuotaExceeded()) == DEFAULT_MESSAGES["ko"]["quota_exceeded"]
    
    def test_messages_path(self, tmp_path):
        path = tmp_path / "messages.yaml"
        path.write_text('en:\n  quota_exceeded: "No credits left."\n', encoding="utf-8")
        
        catalog = MessageCatalog.from_config(Config(MESSAGES_PATH=str(path)))
        
        assert catalog.describe(QuotaExceeded()) == "No credits left."
