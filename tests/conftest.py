"""共通テストフィクスチャ

全テストから利用可能なモックオブジェクトとサンプルデータを提供。

モックの作成:
- MagicMock(spec=ABC) でABCのメソッドシグネチャを保持
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from paroquia.adapters.session_storage import InMemorySessionStorage
from paroquia.domain.models import (
    Contribution,
    ContributionMethod,
    DashboardStats,
    ParishInfo,
    Pastoral,
    Registration,
    RegistrationStatus,
    Service,
    Session,
    UserProfile,
)
from paroquia.domain.ports import Notifier, ParishBackend
from paroquia.services.session_store import SessionStore
from paroquia.services.view_controller import ViewController

# ========== サンプルデータ ==========


@pytest.fixture
def sample_user() -> UserProfile:
    """サンプルユーザー: 一般の信徒"""
    return UserProfile(id=1, name="Maria", email="maria@example.com")


@pytest.fixture
def sample_admin() -> UserProfile:
    """サンプルユーザー: 管理者"""
    return UserProfile(id=99, name="Padre João", email="joao@example.com", is_admin=True)


@pytest.fixture
def sample_session(sample_user) -> Session:
    return Session(token="token-maria", user=sample_user)


@pytest.fixture
def admin_session(sample_admin) -> Session:
    return Session(token="token-admin", user=sample_admin)


@pytest.fixture
def sample_service() -> Service:
    return Service(
        id=7,
        name="Catequese Infantil",
        description="Inscrições para a catequese para crianças e pré-adolescentes.",
    )


@pytest.fixture
def sample_parish_info() -> ParishInfo:
    return ParishInfo(
        name="Paróquia Santo Antônio de Marília",
        history="Confiada aos Frades Franciscanos Capuchinhos.",
        mass_times=["Domingo 7h", "Domingo 10h30"],
    )


@pytest.fixture
def sample_pastoral() -> Pastoral:
    return Pastoral(
        id=1,
        name="Pastoral da Criança",
        description="Acompanhamento de crianças carentes e suas famílias.",
        meeting_info="Sábados, às 14h, no Salão Paroquial.",
    )


@pytest.fixture
def sample_registration(sample_user, sample_service) -> Registration:
    return Registration(
        id=10,
        user=sample_user,
        service=sample_service,
        status=RegistrationStatus.PENDING,
        created_at="2025-06-01T10:00:00Z",
    )


@pytest.fixture
def sample_contribution() -> Contribution:
    return Contribution(
        id=3,
        user_id=1,
        value=Decimal("50.00"),
        method=ContributionMethod.PIX,
        created_at="2025-06-01T10:00:00Z",
    )


# ========== モック / 組み立て ==========


@pytest.fixture
def mock_backend() -> MagicMock:
    """ParishBackend のモック（変更系はデフォルトで確認メッセージを返す）"""
    backend = MagicMock(spec=ParishBackend)
    backend.create_registration.return_value = "Inscrição realizada com sucesso!"
    backend.create_contribution.return_value = "Contribuição registrada."
    backend.admin_update_registration_status.return_value = "Status atualizado."
    backend.admin_update_user.return_value = "Usuário atualizado."
    backend.register.return_value = "Utilizador registado com sucesso!"
    backend.list_my_registrations.return_value = []
    backend.list_my_contributions.return_value = []
    backend.admin_list_registrations.return_value = []
    backend.admin_list_users.return_value = []
    backend.admin_dashboard_stats.return_value = DashboardStats()
    return backend


@pytest.fixture
def mock_notifier() -> MagicMock:
    return MagicMock(spec=Notifier)


@pytest.fixture
def session_store() -> SessionStore:
    """空のメモリストレージを使う SessionStore"""
    return SessionStore(InMemorySessionStorage())


@pytest.fixture
def controller(mock_backend, session_store, mock_notifier) -> ViewController:
    return ViewController(
        backend=mock_backend,
        session_store=session_store,
        notifier=mock_notifier,
        pix_key="pix@paroquia.test",
    )
