"""ドメインモデル - 外部依存なしのデータ構造"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class Role(Enum):
    """ログイン中ユーザーの役割"""

    USER = "user"
    ADMIN = "admin"


class RegistrationStatus(Enum):
    """サービス申込のステータス"""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    DECLINED = "Declined"

    def can_transition_to(self, new_status: RegistrationStatus) -> bool:
        """Pending → Confirmed/Declined のみ許可。決定後は変更不可"""
        return self is RegistrationStatus.PENDING and new_status is not self


class ContributionMethod(Enum):
    """献金（Dízimo）の支払い方法"""

    PIX = "PIX"
    CARD = "Card"
    BOLETO = "Boleto"


class NotificationLevel(Enum):
    """ユーザー向け一時通知の種類"""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class UserProfile:
    """ユーザープロファイル（サーバー側データのキャッシュ）"""

    id: int
    name: str
    email: str
    is_admin: bool = False
    address: str = ""
    date_of_birth: str = ""  # YYYY-MM-DD
    gender: str = ""

    @property
    def role(self) -> Role:
        return Role.ADMIN if self.is_admin else Role.USER


@dataclass(frozen=True)
class Session:
    """認証済みセッション（トークン + ユーザー）"""

    token: str
    user: UserProfile


@dataclass(frozen=True)
class Service:
    """申込可能なパロキアの活動（洗礼講座、カテケーシス等）"""

    id: int
    name: str
    description: str = ""


@dataclass(frozen=True)
class Pastoral:
    """パストラル（奉仕グループ）"""

    id: int
    name: str
    description: str = ""
    meeting_info: str = ""  # 例: "Sábados, às 14h, no Salão Paroquial."


@dataclass(frozen=True)
class MassTime:
    """ミサの時間"""

    day: str  # 例: "Domingo"
    time: str  # 例: "10h30"
    location: str = ""
    description: str = ""


@dataclass(frozen=True)
class ParishInfo:
    """パロキアの基本情報（シングルトン）"""

    name: str
    history: str = ""
    mass_times: list[str] = field(default_factory=list)
    secretariat_hours: str = ""
    priest_hours: str = ""
    liturgical_calendar_url: str = ""


@dataclass(frozen=True)
class Registration:
    """サービスへの申込。必ず1つの Service と1人の User を参照する"""

    id: int
    user: UserProfile
    service: Service
    status: RegistrationStatus = RegistrationStatus.PENDING
    created_at: str = ""  # ISO8601


@dataclass(frozen=True)
class Contribution:
    """献金の意思表示（決済処理は行わない）"""

    id: int
    user_id: int
    value: Decimal
    method: ContributionMethod
    status: str = "Pending"
    created_at: str = ""


@dataclass(frozen=True)
class DashboardStats:
    """管理画面の集計値"""

    total_users: int = 0
    total_registrations: int = 0
    pending_registrations: int = 0
    total_contributions: int = 0
    contributions_total: Decimal = Decimal("0")


@dataclass(frozen=True)
class RegisterForm:
    """新規登録フォームの入力"""

    name: str
    email: str
    password: str
    address: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None


@dataclass(frozen=True)
class UserUpdate:
    """管理者によるユーザー編集。None のフィールドは変更しない"""

    name: str | None = None
    email: str | None = None
    is_admin: bool | None = None
    address: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None


@dataclass(frozen=True)
class Notification:
    """画面に一時的に表示する通知"""

    message: str
    level: NotificationLevel = NotificationLevel.INFO


def format_brl(value: Decimal) -> str:
    """金額をブラジルレアル表記に整形。例: Decimal("1234.5") -> "R$ 1.234,50" """
    text = f"{value.quantize(Decimal('0.01')):,.2f}"
    return "R$ " + text.replace(",", "_").replace(".", ",").replace("_", ".")
