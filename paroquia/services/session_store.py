"""SessionStore - 「今だれがクライアントを使っているか」の唯一の情報源

トークンとユーザープロファイルをメモリに保持し、SessionStorage にミラーする。
View側のコードは SessionStorage に直接触れず、必ずこのクラスを経由する。
"""

from __future__ import annotations

import json
import logging
import threading

from paroquia.domain.models import Session, UserProfile
from paroquia.domain.ports import SessionStorage

logger = logging.getLogger(__name__)

TOKEN_KEY = "paroquia.token"
USER_KEY = "paroquia.user"


class SessionStore:
    """
    セッションの get / set / clear を提供する。

    - 生成時に永続ストレージから復元を試みる（失敗は「セッションなし」扱い）
    - 書き込み（set / clear）はロックで直列化、読み込みはロックなし
    - clear 前に送信済みのリクエストは遡って無効化しない
    """

    def __init__(self, storage: SessionStorage) -> None:
        """
        Args:
            storage: 永続ストレージ（JSONファイル、メモリ等）
        """
        self._storage = storage
        self._lock = threading.Lock()
        self._session: Session | None = self._rehydrate()

    def get(self) -> Session | None:
        """現在のセッションを返す。例外は送出しない"""
        return self._session

    def set(self, session: Session) -> None:
        """セッションを保存し、以降のリクエストで使われるようにする

        永続化はトークンを最後に書く。途中で失敗してもトークンと
        別ユーザーのプロファイルの組み合わせは残らない（復元時は「セッションなし」）。
        """
        with self._lock:
            self._session = session
            try:
                self._storage.remove_item(TOKEN_KEY)
                self._storage.set_item(USER_KEY, _user_to_json(session.user))
                self._storage.set_item(TOKEN_KEY, session.token)
            except (OSError, ValueError):
                # メモリ上のセッションを正とする
                logger.exception("Failed to persist session for user %s", session.user.id)
                self._discard_persisted()
        logger.info("Session set: user_id=%s, admin=%s", session.user.id, session.user.is_admin)

    def clear(self) -> None:
        """セッションをメモリと永続ストレージから削除"""
        with self._lock:
            self._session = None
            self._discard_persisted()
        logger.info("Session cleared")

    def _discard_persisted(self) -> None:
        try:
            self._storage.remove_item(TOKEN_KEY)
            self._storage.remove_item(USER_KEY)
        except (OSError, ValueError):
            logger.exception("Failed to remove persisted session")

    def _rehydrate(self) -> Session | None:
        """永続ストレージからセッションを復元。壊れていれば None"""
        try:
            token = self._storage.get_item(TOKEN_KEY)
            raw_user = self._storage.get_item(USER_KEY)
        except (OSError, ValueError) as e:
            logger.warning("Could not read persisted session: %s", e)
            return None

        if not token or not raw_user:
            return None

        try:
            user = _user_from_json(raw_user)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding corrupt persisted session: %s", e)
            return None

        logger.info("Session restored: user_id=%s", user.id)
        return Session(token=token, user=user)


def _user_to_json(user: UserProfile) -> str:
    return json.dumps(
        {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "is_admin": user.is_admin,
            "address": user.address,
            "date_of_birth": user.date_of_birth,
            "gender": user.gender,
        },
        ensure_ascii=False,
    )


def _user_from_json(raw: str) -> UserProfile:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("stored user is not a JSON object")
    return UserProfile(
        id=int(data["id"]),
        name=str(data["name"]),
        email=str(data["email"]),
        is_admin=bool(data.get("is_admin", False)),
        address=data.get("address") or "",
        date_of_birth=data.get("date_of_birth") or "",
        gender=data.get("gender") or "",
    )
