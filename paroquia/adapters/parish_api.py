"""Parish REST API Adapter

ParishBackend ABCの実装。
各エンドポイントは ResourceClient.call() の薄いラッパーで、
- リクエストボディは pydantic モデルで送信前に検証（不正なら InvalidInput、通信しない）
- レスポンスJSONはドメインモデルに変換（形が不正なら ProtocolError）

ワイヤ形式は snake_case（id, service_id, is_admin, dob, meeting_info, created_at）。
Go バックエンドが実際に返すキー（ID, CreatedAt, isAdmin, meeting_time 等）も受け付ける。
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_serializer

from paroquia.adapters.resource_client import ResourceClient
from paroquia.domain.errors import InvalidInput, ProtocolError
from paroquia.domain.models import (
    Contribution,
    ContributionMethod,
    DashboardStats,
    MassTime,
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
from paroquia.domain.ports import ParishBackend

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ── リクエストモデル ──────────────────────────────────────────────────────────


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(pattern=_EMAIL_PATTERN)
    password: str = Field(min_length=6)
    address: str | None = None
    dob: str | None = None
    gender: str | None = None


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegistrationRequest(BaseModel):
    service_id: int = Field(gt=0)


class ContributionRequest(BaseModel):
    value: Decimal = Field(gt=0, decimal_places=2)
    method: ContributionMethod

    @field_serializer("value")
    def _value_as_number(self, value: Decimal) -> float:
        # バックエンドは数値を期待する（pydantic のデフォルトは文字列）
        return float(value)


class StatusUpdateRequest(BaseModel):
    status: RegistrationStatus


class UserUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    email: str | None = Field(default=None, pattern=_EMAIL_PATTERN)
    is_admin: bool | None = None
    address: str | None = None
    dob: str | None = None
    gender: str | None = None


def _build(model: type[BaseModel], **values: Any) -> dict[str, Any]:
    """リクエストモデルを検証して JSON 用 dict にする"""
    try:
        request = model(**values)
    except ValidationError as e:
        raise InvalidInput(_describe_validation_error(e)) from e
    return request.model_dump(mode="json", exclude_none=True)


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    field_name = ".".join(str(part) for part in first.get("loc", ())) or "input"
    return f"Dados inválidos ({field_name}): {first.get('msg', 'valor inválido')}"


# ── Adapter ───────────────────────────────────────────────────────────────────


class HttpParishBackend(ParishBackend):
    """
    ResourceClient を使った ParishBackend 実装。

    エラーは ResourceClient が正規化したものをそのまま呼び出し元に伝播する。
    """

    def __init__(self, client: ResourceClient) -> None:
        """
        Args:
            client: 認証付き JSON クライアント
        """
        self._client = client

    # ── 公開情報 ──────────────────────────────────────────────────────────────

    def get_parish_info(self) -> ParishInfo:
        return _parse(_to_parish_info, self._client.call("/api/parish-info"))

    def list_services(self) -> list[Service]:
        return _parse_list(_to_service, self._client.call("/api/services"))

    def list_pastorais(self) -> list[Pastoral]:
        return _parse_list(_to_pastoral, self._client.call("/api/pastorais"))

    def list_mass_times(self) -> list[MassTime]:
        return _parse_list(_to_mass_time, self._client.call("/api/mass-times"))

    # ── 認証 ──────────────────────────────────────────────────────────────────

    def register(self, form: RegisterForm) -> str:
        body = _build(
            RegisterRequest,
            name=form.name,
            email=form.email,
            password=form.password,
            address=form.address,
            dob=form.date_of_birth,
            gender=form.gender,
        )
        data = self._client.call("/api/register", "POST", body)
        logger.info("Registered new user: %s", form.email)
        return _message(data)

    def login(self, email: str, password: str) -> Session:
        body = _build(LoginRequest, email=email, password=password)
        data = self._client.call("/api/login", "POST", body)
        return _parse(_to_session, data)

    # ── ログインユーザー ──────────────────────────────────────────────────────

    def create_registration(self, service_id: int) -> str:
        body = _build(RegistrationRequest, service_id=service_id)
        data = self._client.call("/api/registrations", "POST", body)
        logger.info("Registration created for service_id=%s", service_id)
        return _message(data)

    def list_my_registrations(self) -> list[Registration]:
        return _parse_list(_to_registration, self._client.call("/api/my-registrations"))

    def create_contribution(self, value: Decimal, method: ContributionMethod) -> str:
        body = _build(ContributionRequest, value=value, method=method)
        data = self._client.call("/api/contributions", "POST", body)
        logger.info("Contribution intent recorded: value=%s, method=%s", value, method)
        return _message(data)

    def list_my_contributions(self) -> list[Contribution]:
        return _parse_list(_to_contribution, self._client.call("/api/my-contributions"))

    # ── 管理者 ────────────────────────────────────────────────────────────────

    def admin_list_registrations(self) -> list[Registration]:
        return _parse_list(
            _to_registration, self._client.call("/api/admin/registrations")
        )

    def admin_update_registration_status(
        self, registration_id: int, status: RegistrationStatus
    ) -> str:
        body = _build(StatusUpdateRequest, status=status)
        data = self._client.call(
            f"/api/admin/registrations/{registration_id}", "PATCH", body
        )
        logger.info(
            "Registration %s status set to %s", registration_id, status.value
        )
        return _message(data)

    def admin_list_users(self) -> list[UserProfile]:
        return _parse_list(_to_user, self._client.call("/api/admin/users"))

    def admin_update_user(self, user_id: int, update: UserUpdate) -> str:
        body = _build(
            UserUpdateRequest,
            name=update.name,
            email=update.email,
            is_admin=update.is_admin,
            address=update.address,
            dob=update.date_of_birth,
            gender=update.gender,
        )
        data = self._client.call(f"/api/admin/users/{user_id}", "PUT", body)
        logger.info("User %s updated (fields=%s)", user_id, sorted(body))
        return _message(data)

    def admin_dashboard_stats(self) -> DashboardStats:
        return _parse(_to_stats, self._client.call("/api/admin/dashboard-stats"))


# ── レスポンス変換 ────────────────────────────────────────────────────────────


def _parse(converter, data: Any):
    """変換関数を適用し、形の不一致を ProtocolError に変換"""
    if not isinstance(data, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(data).__name__}")
    try:
        return converter(data)
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise ProtocolError(f"Unexpected response shape: {e!r}") from e


def _parse_list(converter, data: Any) -> list:
    if not isinstance(data, list):
        raise ProtocolError(f"Expected a JSON array, got {type(data).__name__}")
    return [_parse(converter, item) for item in data]


def _message(data: Any) -> str:
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return ""


_MISSING = object()

# Go バックエンドはポルトガル語のステータスを保存している
_STATUS_ALIASES = {
    "Pendente": RegistrationStatus.PENDING,
    "Confirmada": RegistrationStatus.CONFIRMED,
    "Confirmado": RegistrationStatus.CONFIRMED,
    "Recusada": RegistrationStatus.DECLINED,
    "Recusado": RegistrationStatus.DECLINED,
}


def _field(data: dict, *keys: str, default: Any = _MISSING) -> Any:
    """候補キーを順に探す。見つからずデフォルトもなければ KeyError"""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    if default is _MISSING:
        raise KeyError(keys[0])
    return default


def _status(raw: Any) -> RegistrationStatus:
    if raw in _STATUS_ALIASES:
        return _STATUS_ALIASES[raw]
    return RegistrationStatus(raw)


def _text(data: dict, *keys: str) -> str:
    return str(_field(data, *keys, default=""))


def _id(data: dict) -> int:
    return int(_field(data, "id", "ID"))


def _to_user(data: dict) -> UserProfile:
    return UserProfile(
        id=_id(data),
        name=_text(data, "name"),
        email=_text(data, "email"),
        is_admin=bool(_field(data, "is_admin", "isAdmin", default=False)),
        address=_text(data, "address"),
        date_of_birth=_text(data, "dob", "date_of_birth"),
        gender=_text(data, "gender"),
    )


def _to_session(data: dict) -> Session:
    token = _field(data, "token")
    if not isinstance(token, str) or not token:
        raise ValueError("token must be a non-empty string")
    return Session(token=token, user=_to_user(_field(data, "user")))


def _to_service(data: dict) -> Service:
    return Service(
        id=_id(data),
        name=_text(data, "name"),
        description=_text(data, "description"),
    )


def _to_pastoral(data: dict) -> Pastoral:
    meeting_info = _text(data, "meeting_info", "meetingInfo")
    if not meeting_info:
        parts = [_text(data, "meeting_time"), _text(data, "meeting_location")]
        meeting_info = ", ".join(p for p in parts if p)
    return Pastoral(
        id=_id(data),
        name=_text(data, "name"),
        description=_text(data, "description"),
        meeting_info=meeting_info,
    )


def _to_mass_time(data: dict) -> MassTime:
    return MassTime(
        day=str(_field(data, "day")),
        time=str(_field(data, "time")),
        location=_text(data, "location"),
        description=_text(data, "description"),
    )


def _to_parish_info(data: dict) -> ParishInfo:
    mass_times = _field(data, "mass_times", default=[])
    if not isinstance(mass_times, list):
        raise TypeError("mass_times must be a list")
    return ParishInfo(
        name=str(_field(data, "name")),
        history=_text(data, "history"),
        mass_times=[str(t) for t in mass_times],
        secretariat_hours=_text(data, "secretariat_hours"),
        priest_hours=_text(data, "priest_hours"),
        liturgical_calendar_url=_text(data, "liturgical_calendar_url"),
    )


def _to_registration(data: dict) -> Registration:
    user_data = _field(data, "user", default=None)
    if isinstance(user_data, dict):
        user = _to_user(user_data)
    else:
        user = UserProfile(id=int(_field(data, "user_id")), name="", email="")

    service_data = _field(data, "service", default=None)
    if isinstance(service_data, dict):
        service = _to_service(service_data)
    else:
        service = Service(id=int(_field(data, "service_id")), name="")

    return Registration(
        id=_id(data),
        user=user,
        service=service,
        status=_status(_field(data, "status", default="Pending")),
        created_at=_text(data, "created_at", "CreatedAt"),
    )


def _to_contribution(data: dict) -> Contribution:
    return Contribution(
        id=_id(data),
        user_id=int(_field(data, "user_id", default=0)),
        value=Decimal(str(_field(data, "value"))),
        method=ContributionMethod(_field(data, "method")),
        status=_text(data, "status") or "Pending",
        created_at=_text(data, "created_at", "CreatedAt"),
    )


def _to_stats(data: dict) -> DashboardStats:
    return DashboardStats(
        total_users=int(_field(data, "total_users", default=0)),
        total_registrations=int(_field(data, "total_registrations", default=0)),
        pending_registrations=int(_field(data, "pending_registrations", default=0)),
        total_contributions=int(_field(data, "total_contributions", default=0)),
        contributions_total=Decimal(str(_field(data, "contributions_total", default=0))),
    )
