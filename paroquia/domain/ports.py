"""Ports - 外部とのインターフェース定義（ABC）

各Port（抽象基底クラス）はバックエンドやローカルストレージとの契約を定義します。
実装クラス（Adapter）はこれらのABCを継承し、全ての抽象メソッドを実装する必要があります。
テストでは MagicMock(spec=Port) でシグネチャを保ったまま差し替えます。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from paroquia.domain.models import (
    Contribution,
    ContributionMethod,
    DashboardStats,
    MassTime,
    Notification,
    ParishInfo,
    Pastoral,
    RegisterForm,
    Registration,
    RegistrationStatus,
    Service,
    Session,
    UserProfile,
    UserUpdate,
)


class SessionStorage(ABC):
    """セッションの永続ストレージ（ブラウザの localStorage 相当）"""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """キーに対応する値を返す。存在しない場合は None"""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """キーに値を保存"""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """キーを削除（存在しなくてもエラーにしない）"""
        pass


class Notifier(ABC):
    """ユーザー向け一時通知の表示先（コンソール、GUI等）"""

    @abstractmethod
    def show(self, notification: Notification) -> None:
        """通知を表示"""
        pass


class ParishBackend(ABC):
    """パロキア REST バックエンドのエンドポイント群

    変更系メソッドはサーバーの確認メッセージ（{"message": ...}）を返す。
    """

    # ── 公開情報（認証不要） ──────────────────────────────────────────────────

    @abstractmethod
    def get_parish_info(self) -> ParishInfo:
        """GET /api/parish-info"""
        pass

    @abstractmethod
    def list_services(self) -> list[Service]:
        """GET /api/services"""
        pass

    @abstractmethod
    def list_pastorais(self) -> list[Pastoral]:
        """GET /api/pastorais"""
        pass

    @abstractmethod
    def list_mass_times(self) -> list[MassTime]:
        """GET /api/mass-times"""
        pass

    # ── 認証 ─────────────────────────────────────────────────────────────────

    @abstractmethod
    def register(self, form: RegisterForm) -> str:
        """POST /api/register"""
        pass

    @abstractmethod
    def login(self, email: str, password: str) -> Session:
        """POST /api/login → {token, user}"""
        pass

    # ── ログインユーザー ──────────────────────────────────────────────────────

    @abstractmethod
    def create_registration(self, service_id: int) -> str:
        """POST /api/registrations"""
        pass

    @abstractmethod
    def list_my_registrations(self) -> list[Registration]:
        """GET /api/my-registrations"""
        pass

    @abstractmethod
    def create_contribution(self, value: Decimal, method: ContributionMethod) -> str:
        """POST /api/contributions"""
        pass

    @abstractmethod
    def list_my_contributions(self) -> list[Contribution]:
        """GET /api/my-contributions"""
        pass

    # ── 管理者 ───────────────────────────────────────────────────────────────

    @abstractmethod
    def admin_list_registrations(self) -> list[Registration]:
        """GET /api/admin/registrations"""
        pass

    @abstractmethod
    def admin_update_registration_status(
        self, registration_id: int, status: RegistrationStatus
    ) -> str:
        """PATCH /api/admin/registrations/{id}"""
        pass

    @abstractmethod
    def admin_list_users(self) -> list[UserProfile]:
        """GET /api/admin/users"""
        pass

    @abstractmethod
    def admin_update_user(self, user_id: int, update: UserUpdate) -> str:
        """PUT /api/admin/users/{id}"""
        pass

    @abstractmethod
    def admin_dashboard_stats(self) -> DashboardStats:
        """GET /api/admin/dashboard-stats"""
        pass
