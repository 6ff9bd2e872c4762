"""AppConfig.from_env のテスト"""

import os
from unittest.mock import patch

import pytest
from paroquia.config import (
    DEFAULT_API_URL,
    DEFAULT_PIX_KEY,
    DEFAULT_REQUEST_TIMEOUT,
    AppConfig,
)
from paroquia.domain.errors import ConfigError

_KEYS = (
    "PAROQUIA_API_URL",
    "PAROQUIA_SESSION_FILE",
    "PAROQUIA_REQUEST_TIMEOUT",
    "PAROQUIA_PIX_KEY",
)


@pytest.fixture(autouse=True)
def no_dotenv():
    """.env ファイルの内容がテストに混ざらないようにする"""
    with patch("paroquia.config.load_dotenv"):
        yield


def _load(**env: str) -> AppConfig:
    base = {k: v for k, v in os.environ.items() if k not in _KEYS}
    with patch.dict("os.environ", {**base, **env}, clear=True):
        return AppConfig.from_env()


class TestFromEnv:
    def test_defaults(self):
        config = _load()

        assert config.api_base_url == DEFAULT_API_URL
        assert config.request_timeout == DEFAULT_REQUEST_TIMEOUT
        assert config.pix_key == DEFAULT_PIX_KEY
        assert config.session_file == os.path.expanduser("~/.paroquia/session.json")

    def test_values_from_env(self, tmp_path):
        session_file = str(tmp_path / "s.json")
        config = _load(
            PAROQUIA_API_URL="https://api.paroquia.example/",
            PAROQUIA_SESSION_FILE=session_file,
            PAROQUIA_REQUEST_TIMEOUT="2.5",
            PAROQUIA_PIX_KEY="chave@pix",
        )

        assert config.api_base_url == "https://api.paroquia.example"
        assert config.session_file == session_file
        assert config.request_timeout == 2.5
        assert config.pix_key == "chave@pix"

    @pytest.mark.parametrize("raw", ["0", "none", "None"])
    def test_timeout_can_be_disabled(self, raw):
        assert _load(PAROQUIA_REQUEST_TIMEOUT=raw).request_timeout is None

    def test_blank_timeout_uses_default(self):
        assert _load(PAROQUIA_REQUEST_TIMEOUT=" ").request_timeout == DEFAULT_REQUEST_TIMEOUT

    @pytest.mark.parametrize(
        "env",
        [
            {"PAROQUIA_API_URL": "ftp://example.com"},
            {"PAROQUIA_API_URL": "localhost:8080"},
            {"PAROQUIA_SESSION_FILE": "  "},
            {"PAROQUIA_REQUEST_TIMEOUT": "soon"},
            {"PAROQUIA_REQUEST_TIMEOUT": "-1"},
        ],
    )
    def test_invalid_values_raise_config_error(self, env):
        with pytest.raises(ConfigError):
            _load(**env)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            _load(PAROQUIA_API_URL="nope")
