"""ドメイン固有の例外クラス"""


class ParishClientError(Exception):
    """パロキアクライアントの基底例外

    message はユーザーにそのまま表示できる文言を保持する。
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(ParishClientError, ValueError):
    """設定読み込みエラー（環境変数の値が不正等）"""

    pass


class NetworkError(ParishClientError):
    """リクエストを送信できない、またはレスポンスが得られないエラー"""

    pass


class RequestError(ParishClientError):
    """サーバーが非成功ステータスを返したエラー"""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(ParishClientError):
    """レスポンスを期待したJSONとして解釈できないエラー"""

    pass


class AuthRequired(ParishClientError):
    """セッションなしで認証が必要な操作を行おうとした（クライアント側ガード）"""

    pass


class AdminRequired(AuthRequired):
    """管理者権限が必要な操作を一般ユーザーが行おうとした"""

    pass


class InvalidInput(ParishClientError):
    """送信前の入力検証エラー（ネットワーク呼び出しは行わない）"""

    pass
