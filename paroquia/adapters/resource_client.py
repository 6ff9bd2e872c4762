"""Resource Client - バックエンドへの認証付き HTTP/JSON アクセス

全エンドポイント呼び出しはこのクラスの call() を経由する。
- セッションがあれば Authorization: Bearer <token> を付与（呼び出し時点の値を使う）
- 失敗は NetworkError / RequestError / ProtocolError のいずれかに正規化
- 自動リトライ・キャッシュは行わない（1回の call = 1往復）
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from paroquia.domain.errors import NetworkError, ProtocolError, RequestError
from paroquia.services.session_store import SessionStore

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Ocorreu um erro."


class ResourceClient:
    """
    httpx.Client をラップした JSON クライアント。

    http_client を注入するとテストで httpx.MockTransport や
    FastAPI の TestClient をそのまま使える。
    """

    def __init__(
        self,
        base_url: str,
        session_store: SessionStore,
        http_client: httpx.Client | None = None,
        timeout: float | None = 10.0,
    ) -> None:
        """
        Args:
            base_url: バックエンドのベースURL（例: "http://localhost:8080"）
            session_store: トークン取得元
            http_client: 使用する httpx.Client（None の場合は生成する）
            timeout: リクエストタイムアウト秒数（None = 無制限）
        """
        if not base_url:
            raise ValueError("base_url is required")

        self._base_url = base_url.rstrip("/")
        self._session_store = session_store
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def call(self, path: str, method: str = "GET", body: Any = None) -> Any:
        """
        エンドポイントを呼び出し、パース済みJSONを返す。

        Args:
            path: エンドポイントパス（例: "/api/services"）
            method: HTTPメソッド
            body: JSONとして送信するボディ（None の場合は送信しない）

        Returns:
            パース済みのJSON（dict / list 等）

        Raises:
            NetworkError: 送信できない、またはレスポンスが得られない
            RequestError: 非成功ステータス
            ProtocolError: ボディが空、またはJSONでない
        """
        method = method.upper()
        url = f"{self._base_url}/{path.lstrip('/')}"

        headers = {"Accept": "application/json"}
        session = self._session_store.get()
        if session is not None:
            headers["Authorization"] = f"Bearer {session.token}"

        kwargs: dict[str, Any] = {"headers": headers}
        if body is not None:
            kwargs["json"] = body

        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise NetworkError(f"Could not reach the server: {e}") from e

        logger.debug("%s %s -> %d", method, path, response.status_code)

        if not response.is_success:
            message = _extract_error_message(response)
            logger.warning(
                "%s %s returned %d: %s", method, path, response.status_code, message
            )
            raise RequestError(message, status_code=response.status_code)

        if not response.content.strip():
            raise ProtocolError(f"Empty response body from {method} {path}")

        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(f"Invalid JSON from {method} {path}: {e}") from e

    def close(self) -> None:
        """自分で生成した httpx.Client のみ閉じる"""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ResourceClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _extract_error_message(response: httpx.Response) -> str:
    """エラーレスポンスの {"error": "..."} を取り出す。なければ汎用メッセージ"""
    try:
        data = response.json()
    except ValueError:
        return GENERIC_ERROR_MESSAGE
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return GENERIC_ERROR_MESSAGE
