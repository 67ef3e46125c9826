import pytest
from pydantic import ValidationError

from mbox_ingest.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_mailbox_extension(self) -> None:
        s = Settings()
        assert s.mailbox_extension == ".mbox"

    def test_default_decoder_engine(self) -> None:
        s = Settings()
        assert s.decoder_engine == "email"

    def test_default_lookback_window(self) -> None:
        s = Settings()
        assert s.parse_lookback_bytes == 65536

    def test_default_body_excerpt_length(self) -> None:
        s = Settings()
        assert s.body_excerpt_max_chars == 500

    def test_default_retention_is_one_day(self) -> None:
        s = Settings()
        assert s.session_max_age_seconds == 86400


class TestSettingsFromEnvironment:
    def test_env_overrides_lookback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PARSE_LOOKBACK_BYTES", "1024")

        s = Settings()

        assert s.parse_lookback_bytes == 1024

    def test_env_overrides_decoder_engine(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DECODER_ENGINE", "mailparser")

        s = Settings()

        assert s.decoder_engine == "mailparser"

    def test_invalid_integer_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PARSE_MAX_WORKERS", "many")

        with pytest.raises(ValidationError):
            Settings()
