"""設定管理 - 環境変数の型安全な読み込み"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from paroquia.domain.errors import ConfigError

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_SESSION_FILE = "~/.paroquia/session.json"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_PIX_KEY = "pix@paroquiasantoantonio.org.br"


@dataclass(frozen=True)
class AppConfig:
    """アプリケーション設定"""

    api_base_url: str = DEFAULT_API_URL
    session_file: str = DEFAULT_SESSION_FILE
    request_timeout: float | None = DEFAULT_REQUEST_TIMEOUT  # None = タイムアウトなし
    pix_key: str = DEFAULT_PIX_KEY

    @classmethod
    def from_env(cls) -> "AppConfig":
        """環境変数から設定を読み込む

        Raises:
            ConfigError: 値が不正な場合
        """
        load_dotenv()

        api_base_url = os.getenv("PAROQUIA_API_URL", DEFAULT_API_URL).strip()
        if not api_base_url.startswith(("http://", "https://")):
            raise ConfigError(
                f"PAROQUIA_API_URL must start with http:// or https://: {api_base_url!r}"
            )

        session_file = os.getenv("PAROQUIA_SESSION_FILE", DEFAULT_SESSION_FILE)
        if not session_file.strip():
            raise ConfigError("PAROQUIA_SESSION_FILE must not be empty")

        return cls(
            api_base_url=api_base_url.rstrip("/"),
            session_file=os.path.expanduser(session_file),
            request_timeout=_parse_timeout(os.getenv("PAROQUIA_REQUEST_TIMEOUT")),
            pix_key=os.getenv("PAROQUIA_PIX_KEY", DEFAULT_PIX_KEY),
        )


def _parse_timeout(raw: str | None) -> float | None:
    """タイムアウト秒数を解釈。"0" / "none" はタイムアウトなし"""
    if raw is None or not raw.strip():
        return DEFAULT_REQUEST_TIMEOUT
    if raw.strip().lower() in ("0", "none"):
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(
            f"PAROQUIA_REQUEST_TIMEOUT is not a number: {raw!r}"
        ) from None
    if value < 0:
        raise ConfigError(f"PAROQUIA_REQUEST_TIMEOUT must be positive: {raw!r}")
    return value
