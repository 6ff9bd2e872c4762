"""E2E テスト用フィクスチャ

FastAPI で REST API と同じ形のフェイクバックエンドをプロセス内に立て、
TestClient を ResourceClient に注入して実際のアダプタ層を通してテストする。

実行例:
  pytest tests/e2e/ -m e2e -v
"""

import itertools
import threading
from datetime import datetime, timezone

import pytest
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from paroquia.adapters.parish_api import HttpParishBackend
from paroquia.adapters.resource_client import ResourceClient
from paroquia.services.view_controller import ViewController
from pydantic import BaseModel

# テスト用固定値
ADMIN_EMAIL = "padre@paroquia.test"
ADMIN_PASSWORD = "admin123"
PIX_KEY = "pix@paroquia.test"


class RegisterBody(BaseModel):
    name: str
    email: str
    password: str
    address: str | None = None
    dob: str | None = None
    gender: str | None = None


class LoginBody(BaseModel):
    email: str
    password: str


class RegistrationBody(BaseModel):
    service_id: int


class ContributionBody(BaseModel):
    value: float
    method: str


class StatusBody(BaseModel):
    status: str


class UserUpdateBody(BaseModel):
    name: str | None = None
    email: str | None = None
    is_admin: bool | None = None
    address: str | None = None
    dob: str | None = None
    gender: str | None = None


class FakeParish:
    """フェイクバックエンドのインメモリデータ"""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._ids = itertools.count(1)
        self._tokens = itertools.count(1)
        self.users: dict[int, dict] = {}
        self.passwords: dict[int, str] = {}
        self.tokens: dict[str, int] = {}
        self.registrations: list[dict] = []
        self.contributions: list[dict] = []
        self.services = [
            {"id": 7, "name": "Catequese Infantil", "description": "Para crianças."},
            {"id": 8, "name": "Crisma", "description": "Sacramento da Confirmação."},
        ]
        self.pastorais = [
            {
                "id": 1,
                "name": "Pastoral da Criança",
                "description": "Acompanhamento de famílias.",
                "meeting_info": "Sábados, às 14h",
            }
        ]
        self.mass_times = [
            {"day": "Domingo", "time": "10h30", "location": "Igreja Matriz", "description": ""}
        ]
        self.parish_info = {
            "name": "Paróquia Santo Antônio de Marília",
            "history": "Confiada aos Frades Franciscanos Capuchinhos.",
            "mass_times": ["Domingo 7h", "Domingo 10h30"],
            "secretariat_hours": "Seg a Sex, 8h às 17h",
        }
        self.add_user("Padre João", ADMIN_EMAIL, ADMIN_PASSWORD, is_admin=True)

    def add_user(self, name: str, email: str, password: str, is_admin: bool = False) -> dict:
        user_id = next(self._ids)
        user = {
            "id": user_id,
            "name": name,
            "email": email,
            "is_admin": is_admin,
            "address": "",
            "dob": "",
            "gender": "",
        }
        self.users[user_id] = user
        self.passwords[user_id] = password
        return user

    def find_user(self, email: str) -> dict | None:
        return next((u for u in self.users.values() if u["email"] == email), None)

    def issue_token(self, user_id: int) -> str:
        token = f"token-{user_id}-{next(self._tokens)}"
        self.tokens[token] = user_id
        return token

    def revoke_all_tokens(self) -> None:
        self.tokens.clear()

    def registration_view(self, registration: dict) -> dict:
        service = next(s for s in self.services if s["id"] == registration["service_id"])
        return {
            **registration,
            "user": self.users[registration["user_id"]],
            "service": service,
        }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_app(parish: FakeParish) -> FastAPI:
    """REST API と同じルートを持つフェイクアプリ"""
    app = FastAPI()

    @app.exception_handler(HTTPException)
    async def _error_body(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    def current_user(authorization: str | None = Header(default=None)) -> dict:
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(401, "Token de autenticação não fornecido.")
        user_id = parish.tokens.get(authorization.removeprefix("Bearer "))
        if user_id is None:
            raise HTTPException(401, "Token inválido.")
        return parish.users[user_id]

    def current_admin(user: dict = Depends(current_user)) -> dict:
        if not user["is_admin"]:
            raise HTTPException(403, "Acesso negado.")
        return user

    # ── 公開 ──

    @app.get("/api/parish-info")
    def parish_info():
        return parish.parish_info

    @app.get("/api/services")
    def services():
        return parish.services

    @app.get("/api/pastorais")
    def pastorais():
        return parish.pastorais

    @app.get("/api/mass-times")
    def mass_times():
        return parish.mass_times

    # ── 認証 ──

    @app.post("/api/register", status_code=201)
    def register(body: RegisterBody):
        with parish.lock:
            if parish.find_user(body.email):
                raise HTTPException(409, "Este email já está em uso.")
            user = parish.add_user(body.name, body.email, body.password)
            user.update(address=body.address or "", dob=body.dob or "", gender=body.gender or "")
        return {"message": "Utilizador registado com sucesso!"}

    @app.post("/api/login")
    def login(body: LoginBody):
        user = parish.find_user(body.email)
        if user is None or parish.passwords[user["id"]] != body.password:
            raise HTTPException(401, "Credenciais inválidas.")
        return {
            "message": "Login bem-sucedido!",
            "token": parish.issue_token(user["id"]),
            "user": user,
        }

    # ── ログインユーザー ──

    @app.post("/api/registrations", status_code=201)
    def create_registration(body: RegistrationBody, user: dict = Depends(current_user)):
        service = next((s for s in parish.services if s["id"] == body.service_id), None)
        if service is None:
            raise HTTPException(404, "Serviço não encontrado.")
        with parish.lock:
            if any(
                r["user_id"] == user["id"] and r["service_id"] == body.service_id
                for r in parish.registrations
            ):
                raise HTTPException(409, "Você já está inscrito neste serviço.")
            parish.registrations.append(
                {
                    "id": len(parish.registrations) + 1,
                    "user_id": user["id"],
                    "service_id": body.service_id,
                    "status": "Pending",
                    "created_at": _now(),
                }
            )
        return {"message": f"Inscrição em '{service['name']}' realizada com sucesso!"}

    @app.get("/api/my-registrations")
    def my_registrations(user: dict = Depends(current_user)):
        return [
            parish.registration_view(r)
            for r in parish.registrations
            if r["user_id"] == user["id"]
        ]

    @app.post("/api/contributions", status_code=201)
    def create_contribution(body: ContributionBody, user: dict = Depends(current_user)):
        if body.value <= 0:
            raise HTTPException(400, "Valor inválido.")
        with parish.lock:
            parish.contributions.append(
                {
                    "id": len(parish.contributions) + 1,
                    "user_id": user["id"],
                    "value": body.value,
                    "method": body.method,
                    "status": "Pending",
                    "created_at": _now(),
                }
            )
        return {"message": "Intenção de contribuição registrada."}

    @app.get("/api/my-contributions")
    def my_contributions(user: dict = Depends(current_user)):
        return [c for c in parish.contributions if c["user_id"] == user["id"]]

    # ── 管理者 ──

    @app.get("/api/admin/registrations")
    def admin_registrations(admin: dict = Depends(current_admin)):
        return [parish.registration_view(r) for r in parish.registrations]

    @app.patch("/api/admin/registrations/{registration_id}")
    def admin_update_status(
        registration_id: int, body: StatusBody, admin: dict = Depends(current_admin)
    ):
        if body.status not in ("Confirmed", "Declined"):
            raise HTTPException(400, "Status inválido.")
        registration = next(
            (r for r in parish.registrations if r["id"] == registration_id), None
        )
        if registration is None:
            raise HTTPException(404, "Inscrição não encontrada.")
        registration["status"] = body.status
        return {"message": "Status da inscrição atualizado."}

    @app.get("/api/admin/users")
    def admin_users(admin: dict = Depends(current_admin)):
        return list(parish.users.values())

    @app.put("/api/admin/users/{user_id}")
    def admin_update_user(
        user_id: int, body: UserUpdateBody, admin: dict = Depends(current_admin)
    ):
        user = parish.users.get(user_id)
        if user is None:
            raise HTTPException(404, "Usuário não encontrado.")
        user.update(body.model_dump(exclude_none=True))
        return {"message": "Usuário atualizado com sucesso."}

    @app.get("/api/admin/dashboard-stats")
    def admin_stats(admin: dict = Depends(current_admin)):
        return {
            "total_users": len(parish.users),
            "total_registrations": len(parish.registrations),
            "pending_registrations": sum(
                1 for r in parish.registrations if r["status"] == "Pending"
            ),
            "total_contributions": len(parish.contributions),
            "contributions_total": sum(c["value"] for c in parish.contributions),
        }

    return app


@pytest.fixture
def parish() -> FakeParish:
    return FakeParish()


@pytest.fixture
def api(parish):
    with TestClient(create_app(parish)) as c:
        yield c


@pytest.fixture
def resource_client(api, session_store) -> ResourceClient:
    return ResourceClient("http://testserver", session_store, http_client=api)


@pytest.fixture
def e2e_controller(resource_client, session_store) -> ViewController:
    """フェイクバックエンドに接続した ViewController（読み込みは逐次）"""
    return ViewController(
        backend=HttpParishBackend(resource_client),
        session_store=session_store,
        pix_key=PIX_KEY,
        max_workers=1,
    )
