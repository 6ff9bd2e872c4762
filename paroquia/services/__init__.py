"""Services layer - セッション管理と画面ロジック"""

from paroquia.services.session_store import SessionStore
from paroquia.services.view_controller import (
    AuthState,
    Screen,
    ScreenState,
    ScreenView,
    ViewController,
)

__all__ = [
    "SessionStore",
    "ViewController",
    "Screen",
    "ScreenState",
    "ScreenView",
    "AuthState",
]
