"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from paroquia.domain.errors import (
    AdminRequired,
    AuthRequired,
    ConfigError,
    InvalidInput,
    NetworkError,
    ParishClientError,
    ProtocolError,
    RequestError,
)
from paroquia.domain.models import (
    Contribution,
    ContributionMethod,
    DashboardStats,
    MassTime,
    Notification,
    NotificationLevel,
    ParishInfo,
    Pastoral,
    RegisterForm,
    Registration,
    RegistrationStatus,
    Role,
    Service,
    Session,
    UserProfile,
    UserUpdate,
)
from paroquia.domain.ports import Notifier, ParishBackend, SessionStorage

__all__ = [
    # Models
    "Role",
    "RegistrationStatus",
    "ContributionMethod",
    "NotificationLevel",
    "UserProfile",
    "Session",
    "Service",
    "Pastoral",
    "MassTime",
    "ParishInfo",
    "Registration",
    "Contribution",
    "DashboardStats",
    "RegisterForm",
    "UserUpdate",
    "Notification",
    # Errors
    "ParishClientError",
    "ConfigError",
    "NetworkError",
    "RequestError",
    "ProtocolError",
    "AuthRequired",
    "AdminRequired",
    "InvalidInput",
    # Ports
    "SessionStorage",
    "Notifier",
    "ParishBackend",
]
