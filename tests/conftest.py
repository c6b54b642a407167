"""
Fixtures compartidas: backend de gestión simulado con httpx.MockTransport
"""
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from fieldsales.cache.report_cache import ReportCache
from fieldsales.clients.manager_api_client import ManagerApiClient
from fieldsales.config import settings
from fieldsales.main import app
from fieldsales.schemas.session import Session
from fieldsales.services import get_manager_api, get_report_cache

BACKEND_URL = "http://manager-api.test"
MANAGER_ID = "cu-1"


def make_token(role: str = "manager", company_id: str = "c-1") -> str:
    claims = {
        "userId": "u-1",
        "companyId": company_id,
        "companyUserId": MANAGER_ID,
        "role": role,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def auth_headers(role: str = "manager") -> dict:
    return {"Authorization": f"Bearer {make_token(role)}"}


def make_session(role: str = "manager") -> Session:
    token = make_token(role)
    return Session.from_claims(jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]), token)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def make_visit(visit_id: str, **overrides) -> dict:
    started = datetime.now(timezone.utc) - timedelta(hours=2)
    visit = {
        "id": visit_id,
        "shop_id": "s1",
        "shop_name": "Mini Market Central",
        "rep_company_user_id": "cu-7",
        "rep_name": "Asha Perera",
        "started_at": iso(started),
        "ended_at": iso(started + timedelta(minutes=30)),
        "is_verified": False,
        "distance_m": 412.5,
        "gps_accuracy_m": 35.0,
        "exception_reason": None,
        "exception_note": None,
        "approved_by_manager_id": None,
        "approved_at": None,
        "flagged_by_manager_id": None,
        "manager_note": None,
    }
    visit.update(overrides)
    return visit


class FakeBackend:
    """
    Backend de gestión en memoria

    - GET/PATCH de visitas con estado (el PATCH aplica approve/flag)
    - GET/PATCH de pedidos con estado
    - Cualquier otra ruta se responde desde `routes`
    """

    def __init__(self):
        self.visits = []
        self.orders = []
        self.routes = {}
        self.requests = []
        self.patch_response = None

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def patches(self, prefix: str) -> list:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "PATCH" and r.url.path.startswith(prefix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path == "/api/manager/visits":
            rows = self.visits
            if request.url.params.get("exceptions_only") == "true":
                rows = [v for v in rows if v.get("exception_reason")]
            shop = request.url.params.get("shop")
            if shop:
                rows = [v for v in rows if v["shop_id"] == shop]
            return httpx.Response(200, json={"ok": True, "visits": rows})

        if request.method == "PATCH" and path.startswith("/api/manager/visits/"):
            if self.patch_response is not None:
                return self.patch_response
            body = json.loads(request.content)
            visit = next(v for v in self.visits if v["id"] == path.rsplit("/", 1)[-1])
            if body.get("approve"):
                visit["approved_by_manager_id"] = MANAGER_ID
                visit["approved_at"] = iso(datetime.now(timezone.utc))
            if body.get("flag"):
                visit["flagged_by_manager_id"] = MANAGER_ID
            if "managerNote" in body:
                visit["manager_note"] = body["managerNote"]
            return httpx.Response(200, json={"ok": True})

        if request.method == "GET" and path == "/api/manager/orders":
            status_filter = request.url.params.get("status")
            rows = [o for o in self.orders if not status_filter or o["status"] == status_filter]
            return httpx.Response(200, json={"ok": True, "orders": rows})

        if request.method == "PATCH" and path.startswith("/api/manager/orders/"):
            body = json.loads(request.content)
            order = next(o for o in self.orders if o["id"] == path.rsplit("/", 1)[-1])
            order["status"] = body["status"]
            return httpx.Response(200, json={"ok": True})

        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"ok": False, "error": "Not found"})
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def client(self) -> ManagerApiClient:
        return ManagerApiClient(base_url=BACKEND_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def cache():
    return ReportCache(ttl_seconds=60, max_size=100)


@pytest.fixture
def client(backend, cache):
    """TestClient con el backend simulado y un caché limpio"""
    manager_api = backend.client()
    app.dependency_overrides[get_manager_api] = lambda: manager_api
    app.dependency_overrides[get_report_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()
