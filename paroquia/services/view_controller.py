"""ViewController - 画面ごとのデータ読み込みと変更後の再取得

既存の各ドラフトで重複していた「fetch → state更新」を1か所に集約。
Ports（ParishBackend / Notifier）にのみ依存し、HTTPの実装詳細からは独立。

整合性の方針:
    変更系アクション（申込・献金・ステータス変更・ユーザー編集）が成功したら、
    影響を受ける一覧を必ずサーバーから取り直す。レスポンスをローカル状態に
    マージすることはしない（管理画面のステータス変更のみ即時フィードバック用に
    ローカルを書き換え、その後フル再取得した一覧を正とする）。
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from paroquia.domain.errors import (
    AdminRequired,
    AuthRequired,
    InvalidInput,
    NetworkError,
    ParishClientError,
    ProtocolError,
    RequestError,
)
from paroquia.domain.models import (
    ContributionMethod,
    Notification,
    NotificationLevel,
    RegisterForm,
    Registration,
    RegistrationStatus,
    Role,
    Session,
    UserUpdate,
    format_brl,
)
from paroquia.domain.ports import Notifier, ParishBackend
from paroquia.services.session_store import SessionStore

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Não foi possível conectar ao servidor. Tente novamente."
PROTOCOL_ERROR_MESSAGE = "Resposta inesperada do servidor."
LOGIN_REQUIRED_MESSAGE = "Faça login para continuar."
ADMIN_REQUIRED_MESSAGE = "Acesso negado. Recurso de administrador."
CONTRIBUTION_INPUT_MESSAGE = (
    "Por favor, insira um valor e escolha um método de pagamento."
)


class Screen(Enum):
    """画面（現在の画面セレクタの値）"""

    HOME = "home"
    SERVICES = "services"
    PASTORAIS = "pastorais"
    MASS_TIMES = "mass_times"
    MY_REGISTRATIONS = "my_registrations"
    MY_CONTRIBUTIONS = "my_contributions"
    ADMIN = "admin"


class ScreenState(Enum):
    """画面の読み込み状態: Idle → Loading → Ready | Failed"""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class AuthState(Enum):
    """セッションによる画面遷移の状態"""

    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass
class ScreenView:
    """1画面分の表示データ

    data / errors のキーはデータセット名（"services", "registrations" 等）。
    """

    state: ScreenState = ScreenState.IDLE
    data: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)


_SESSION_SCREENS = {Screen.MY_REGISTRATIONS, Screen.MY_CONTRIBUTIONS, Screen.ADMIN}
_ADMIN_SCREENS = {Screen.ADMIN}


class ViewController:
    """
    画面の読み込み、変更系アクション、ログイン状態を管理する。

    処理フロー:
    1. open_screen() で画面を切り替え、必要な読み込みを並列に発行
    2. 変更系アクションはセッションを確認してから書き込み
    3. 書き込み完了後に影響する一覧を再取得

    エラーはすべてここで捕捉し、通知として表示する（呼び出し元に伝播しない）。
    """

    def __init__(
        self,
        backend: ParishBackend,
        session_store: SessionStore,
        notifier: Notifier | None = None,
        pix_key: str = "",
        max_workers: int = 4,
    ) -> None:
        """
        Args:
            backend: パロキア API
            session_store: セッションの保持先
            notifier: 通知の表示先（None の場合は notifications に溜めるだけ）
            pix_key: 献金画面に表示する固定の PIX キー
            max_workers: 並列読み込みのスレッド数上限
        """
        self._backend = backend
        self._session_store = session_store
        self._notifier = notifier
        self._max_workers = max_workers
        self.pix_key = pix_key

        self._loaders: dict[Screen, dict[str, Callable[[], Any]]] = {
            Screen.HOME: {
                "parish_info": backend.get_parish_info,
                "services": backend.list_services,
                "pastorais": backend.list_pastorais,
            },
            Screen.SERVICES: {"services": backend.list_services},
            Screen.PASTORAIS: {"pastorais": backend.list_pastorais},
            Screen.MASS_TIMES: {"mass_times": backend.list_mass_times},
            Screen.MY_REGISTRATIONS: {"registrations": backend.list_my_registrations},
            Screen.MY_CONTRIBUTIONS: {"contributions": backend.list_my_contributions},
            Screen.ADMIN: {
                "registrations": backend.admin_list_registrations,
                "users": backend.admin_list_users,
                "stats": backend.admin_dashboard_stats,
            },
        }
        self._views: dict[Screen, ScreenView] = {s: ScreenView() for s in Screen}

        self.current_screen = Screen.HOME
        self.auth_prompt_open = False
        self.notifications: list[Notification] = []
        self.auth_state = (
            AuthState.AUTHENTICATED
            if session_store.get() is not None
            else AuthState.ANONYMOUS
        )

    # ── 状態の参照 ────────────────────────────────────────────────────────────

    @property
    def session(self) -> Session | None:
        return self._session_store.get()

    @property
    def role(self) -> Role | None:
        session = self.session
        return session.user.role if session else None

    @property
    def last_notification(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None

    def view(self, screen: Screen) -> ScreenView:
        return self._views[screen]

    def pop_notifications(self) -> list[Notification]:
        """溜まった通知を取り出して空にする"""
        pending, self.notifications = self.notifications, []
        return pending

    # ── 画面の読み込み ────────────────────────────────────────────────────────

    def open_screen(self, screen: Screen) -> ScreenView:
        """
        画面を切り替えて読み込む。

        ログインが必要な画面でセッションがない場合は、読み込まずに
        認証プロンプトを開く（現在の画面は変更しない）。
        """
        if screen in _SESSION_SCREENS:
            try:
                self._require_session(admin=screen in _ADMIN_SCREENS)
            except AuthRequired as e:
                self._handle_error(e)
                return self._views[screen]

        self.current_screen = screen
        return self.load(screen)

    def load(self, screen: Screen) -> ScreenView:
        """
        画面のデータを全て取得する。

        独立した読み込みは並列に発行し、各ブランチの成否を個別に記録する。
        1つでも成功すれば Ready、全て失敗したら Failed。
        失敗しても既存データは消さない。
        読み込み中にセッションが変わった場合、ユーザー固有の画面には結果を反映しない。
        """
        view = self._views[screen]
        view.state = ScreenState.LOADING
        logger.info("Loading screen %s", screen.value)

        owner = self.session
        results, errors = self._fetch_all(self._loaders[screen])

        if screen in _SESSION_SCREENS and self.session is not owner:
            logger.info("Session changed while loading %s, results dropped", screen.value)
            return self._views[screen]

        view.data.update(results)
        view.errors = errors
        view.state = ScreenState.READY if results else ScreenState.FAILED
        logger.info(
            "Screen %s %s (%d ok, %d failed)",
            screen.value,
            view.state.value,
            len(results),
            len(errors),
            extra={
                "extra_fields": {
                    "screen": screen.value,
                    "state": view.state.value,
                    "failed": sorted(errors),
                }
            },
        )
        return view

    def open_auth_prompt(self) -> None:
        self.auth_prompt_open = True

    def close_auth_prompt(self) -> None:
        self.auth_prompt_open = False

    # ── 認証 ──────────────────────────────────────────────────────────────────

    def login(self, email: str, password: str) -> bool:
        """
        ログインする。成功時は is_admin から役割を決める。

        Returns:
            bool: 成功した場合 True
        """
        self._begin_authentication()
        try:
            session = self._backend.login(email, password)
        except ParishClientError as e:
            self._fail_authentication(e)
            return False

        self._complete_authentication(session)
        return True

    def register(self, form: RegisterForm) -> bool:
        """
        新規登録してそのままログインする。

        Returns:
            bool: 登録とログインの両方が成功した場合 True
        """
        self._begin_authentication()
        try:
            message = self._backend.register(form)
            self._notify(message or "Cadastro realizado com sucesso!", NotificationLevel.SUCCESS)
            session = self._backend.login(form.email, form.password)
        except ParishClientError as e:
            self._fail_authentication(e)
            return False

        self._complete_authentication(session)
        return True

    def logout(self) -> None:
        """セッションを破棄し、ユーザー固有の画面をリセットしてホームに戻る"""
        self._session_store.clear()
        self.auth_state = AuthState.ANONYMOUS
        self._reset_user_screens()
        self.current_screen = Screen.HOME
        self._notify("Sessão encerrada.", NotificationLevel.INFO)

    # ── 変更系アクション ──────────────────────────────────────────────────────

    def enroll(self, service_id: int) -> bool:
        """サービスに申し込み、自分の申込一覧を再取得"""
        return self._mutate(
            lambda: self._backend.create_registration(service_id),
            affected=[(Screen.MY_REGISTRATIONS, "registrations")],
        )

    def contribute(self, value: Decimal | str | float, method: ContributionMethod | str) -> bool:
        """
        献金の意思を記録し、自分の献金一覧を再取得。

        決済は行わない。PIX の場合は固定キーを案内する。
        """
        parsed: dict[str, Any] = {}

        def write() -> str:
            parsed["value"], parsed["method"] = _parse_contribution(value, method)
            return self._backend.create_contribution(parsed["value"], parsed["method"])

        def success_message(_: str) -> str:
            text = (
                f"Sua contribuição de {format_brl(parsed['value'])} "
                f"via {parsed['method'].value} foi iniciada. Obrigado!"
            )
            if parsed["method"] is ContributionMethod.PIX and self.pix_key:
                text += f" Chave PIX: {self.pix_key}"
            return text

        return self._mutate(
            write,
            affected=[(Screen.MY_CONTRIBUTIONS, "contributions")],
            success_message=success_message,
        )

    def change_registration_status(
        self, registration_id: int, status: RegistrationStatus | str
    ) -> bool:
        """
        申込のステータスを変更（管理者のみ）。

        即時フィードバックのため管理画面の該当行をローカルで書き換え、
        その後に申込一覧と集計を再取得する。
        """
        target: dict[str, RegistrationStatus] = {}

        def write() -> str:
            target["status"] = self._check_status_change(registration_id, status)
            return self._backend.admin_update_registration_status(
                registration_id, target["status"]
            )

        return self._mutate(
            write,
            affected=[(Screen.ADMIN, "registrations"), (Screen.ADMIN, "stats")],
            admin=True,
            on_success=lambda: self._patch_registration(registration_id, target["status"]),
        )

    def edit_user(self, user_id: int, update: UserUpdate) -> bool:
        """ユーザー情報を編集（管理者のみ）し、ユーザー一覧を再取得"""
        return self._mutate(
            lambda: self._backend.admin_update_user(user_id, update),
            affected=[(Screen.ADMIN, "users")],
            admin=True,
        )

    # ── 内部ヘルパー ──────────────────────────────────────────────────────────

    def _mutate(
        self,
        write: Callable[[], str],
        affected: list[tuple[Screen, str]],
        admin: bool = False,
        success_message: Callable[[str], str] | None = None,
        on_success: Callable[[], None] | None = None,
    ) -> bool:
        """
        書き込み → 影響する一覧の再取得。

        書き込みが完了（成功・失敗）するまで再取得は発行しない。
        失敗時は状態を一切変更しない。
        """
        try:
            self._require_session(admin=admin)
            message = write()
        except ParishClientError as e:
            self._handle_error(e)
            return False

        if on_success is not None:
            on_success()
        text = success_message(message) if success_message else message
        self._notify(text or "Operação realizada com sucesso.", NotificationLevel.SUCCESS)

        self._refresh(affected)
        return True

    def _refresh(self, affected: Iterable[tuple[Screen, str]]) -> None:
        """指定された一覧だけを並列に再取得。失敗した一覧は以前の値を保持"""
        loaders = {
            (screen, name): self._loaders[screen][name] for screen, name in affected
        }
        owner = self.session
        results, errors = self._fetch_all(loaders)
        if self.session is not owner:
            # 再取得中に 401 でセッションが破棄された
            return

        for (screen, name), value in results.items():
            view = self._views[screen]
            view.data[name] = value
            view.errors.pop(name, None)
            if view.state is not ScreenState.LOADING:
                view.state = ScreenState.READY
        for (screen, name), message in errors.items():
            self._views[screen].errors[name] = message

    def _fetch_all(self, loaders: dict[Any, Callable[[], Any]]) -> tuple[dict, dict]:
        """
        読み込みを並列に実行し、(成功結果, エラーメッセージ) を返す。

        1つの失敗が他の成功結果を隠さないよう、各ブランチを個別に回収する。
        """
        if not loaders:
            return {}, {}

        workers = max(1, min(len(loaders), self._max_workers))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {key: pool.submit(fn) for key, fn in loaders.items()}

        results: dict[Any, Any] = {}
        errors: dict[Any, str] = {}
        for key, future in futures.items():
            try:
                results[key] = future.result()
            except ParishClientError as e:
                logger.warning("Read %s failed: %s", key, e)
                errors[key] = self._handle_error(e)
        return results, errors

    def _require_session(self, admin: bool = False) -> Session:
        session = self.session
        if session is None:
            raise AuthRequired(LOGIN_REQUIRED_MESSAGE)
        if admin and not session.user.is_admin:
            raise AdminRequired(ADMIN_REQUIRED_MESSAGE)
        return session

    def _check_status_change(
        self, registration_id: int, status: RegistrationStatus | str
    ) -> RegistrationStatus:
        """ステータス変更の妥当性をクライアント側で確認（通信前）"""
        try:
            new_status = RegistrationStatus(status)
        except ValueError:
            raise InvalidInput(f"Status inválido: {status}") from None
        if new_status is RegistrationStatus.PENDING:
            raise InvalidInput("A inscrição só pode ser confirmada ou recusada.")

        current = self._find_admin_registration(registration_id)
        if current is not None and not current.status.can_transition_to(new_status):
            raise InvalidInput(
                f"Esta inscrição já está com status {current.status.value}."
            )
        return new_status

    def _find_admin_registration(self, registration_id: int) -> Registration | None:
        for registration in self._views[Screen.ADMIN].data.get("registrations", []):
            if registration.id == registration_id:
                return registration
        return None

    def _patch_registration(self, registration_id: int, status: RegistrationStatus) -> None:
        view = self._views[Screen.ADMIN]
        registrations = view.data.get("registrations")
        if not registrations:
            return
        view.data["registrations"] = [
            replace(r, status=status) if r.id == registration_id else r
            for r in registrations
        ]

    def _reset_user_screens(self) -> None:
        """ユーザー固有の画面を空にし、表示中ならホームに戻す"""
        for screen in _SESSION_SCREENS:
            self._views[screen] = ScreenView()
        if self.current_screen in _SESSION_SCREENS:
            self.current_screen = Screen.HOME

    def _begin_authentication(self) -> None:
        if self.session is not None:
            # ユーザー切り替え: 古いトークンも前のユーザーのデータも使わない
            self._session_store.clear()
            self._reset_user_screens()
        self.auth_state = AuthState.AUTHENTICATING

    def _fail_authentication(self, error: ParishClientError) -> None:
        self.auth_state = AuthState.ANONYMOUS
        self._handle_error(error)

    def _complete_authentication(self, session: Session) -> None:
        self._session_store.set(session)
        self.auth_state = AuthState.AUTHENTICATED
        self.auth_prompt_open = False
        logger.info("Authenticated as %s (role=%s)", session.user.email, session.user.role.value)
        self._notify(
            f"Bem-vindo(a) de volta, {session.user.name}!", NotificationLevel.SUCCESS
        )

    def _handle_error(self, error: ParishClientError) -> str:
        """エラーを通知に変換し、表示したメッセージを返す"""
        if isinstance(error, AdminRequired):
            message = error.message
        elif isinstance(error, AuthRequired):
            self.open_auth_prompt()
            message = error.message
        elif isinstance(error, RequestError):
            if error.status_code == 401 and self.session is not None:
                logger.warning("Token rejected by server, clearing session")
                self._session_store.clear()
                self.auth_state = AuthState.ANONYMOUS
                self._reset_user_screens()
                self.open_auth_prompt()
            message = error.message
        elif isinstance(error, NetworkError):
            message = NETWORK_ERROR_MESSAGE
        elif isinstance(error, ProtocolError):
            message = PROTOCOL_ERROR_MESSAGE
        else:
            message = error.message

        self._notify(message, NotificationLevel.ERROR)
        return message

    def _notify(self, message: str, level: NotificationLevel) -> None:
        notification = Notification(message=message, level=level)
        self.notifications.append(notification)
        if self._notifier is not None:
            self._notifier.show(notification)


def _parse_contribution(
    value: Decimal | str | float, method: ContributionMethod | str
) -> tuple[Decimal, ContributionMethod]:
    """献金フォームの入力を検証。金額と支払い方法は必須"""
    if value is None or value == "" or method is None or method == "":
        raise InvalidInput(CONTRIBUTION_INPUT_MESSAGE)
    try:
        amount = Decimal(str(value).replace(",", "."))
        chosen = ContributionMethod(method)
    except (InvalidOperation, ValueError):
        raise InvalidInput(CONTRIBUTION_INPUT_MESSAGE) from None
    if not amount.is_finite() or amount <= 0:
        raise InvalidInput(CONTRIBUTION_INPUT_MESSAGE)
    return amount, chosen
