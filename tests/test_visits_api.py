"""
Tests de los endpoints de visitas y revisión de excepciones
"""
import httpx

from fieldsales.config import settings

from conftest import auth_headers, make_token, make_visit

PREFIX = settings.API_PREFIX


# ============================================================================
# AUTENTICACIÓN
# ============================================================================

def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == settings.APP_NAME


def test_health_reports_cache_stats(client, cache):
    cache.set("c-1", "at-risk", None, [])
    cache.get("c-1", "at-risk")
    stats = client.get("/health").json()["cache"]
    assert stats["size"] == 1
    assert stats["hits"] == 1
    assert stats["ttl_seconds"] == 60


def test_visits_require_token(client):
    response = client.get(f"{PREFIX}/visits/exceptions")
    assert response.status_code == 401


def test_visits_reject_invalid_token(client):
    response = client.get(f"{PREFIX}/visits/exceptions", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_rep_cannot_review(client):
    response = client.get(f"{PREFIX}/visits/exceptions", headers=auth_headers("rep"))
    assert response.status_code == 403


def test_session_cookie_is_accepted_and_forwarded(client, backend):
    client.cookies.set(settings.SESSION_COOKIE_NAME, make_token("boss"))
    response = client.get(f"{PREFIX}/visits/exceptions")
    assert response.status_code == 200
    forwarded = backend.requests[0].headers.get("cookie", "")
    assert f"{settings.SESSION_COOKIE_NAME}=" in forwarded


# ============================================================================
# TABLERO Y COLA
# ============================================================================

def test_visit_board_classifies_and_counts(client, backend):
    backend.visits = [
        make_visit("v1", is_verified=True, rep_name="Asha"),
        make_visit("v2", ended_at=None, rep_name="Ravi"),
        make_visit("v3", exception_reason="gps_drift", rep_name="Ravi"),
    ]
    response = client.get(f"{PREFIX}/visits", headers=auth_headers())
    assert response.status_code == 200
    data = response.json()

    states = {v["id"]: v["state"] for v in data["visits"]}
    assert states == {"v1": "verified", "v2": "ongoing", "v3": "exception_pending"}
    assert data["stats"]["total"] == 3
    assert data["stats"]["verified"] == 1
    assert data["stats"]["exceptions"] == 1
    assert data["stats"]["pending"] == 1


def test_visit_board_search(client, backend):
    backend.visits = [make_visit("v1", rep_name="Asha"), make_visit("v2", rep_name="Ravi")]
    response = client.get(f"{PREFIX}/visits", params={"search": "rav"}, headers=auth_headers())
    assert [v["id"] for v in response.json()["visits"]] == ["v2"]
    assert response.json()["stats"]["total"] == 2


def test_exception_queue_filters_and_stats(client, backend):
    backend.visits = [
        make_visit("v1", exception_reason="gps_drift", rep_name="Asha"),
        make_visit("v2", exception_reason="shop_moved", rep_name="Asha", approved_by_manager_id="cu-1"),
        make_visit("v3", exception_reason="gps_drift", rep_name="Ravi"),
        make_visit("v4", is_verified=True),
    ]
    response = client.get(
        f"{PREFIX}/visits/exceptions",
        params={"rep": "Asha", "pending_only": "true"},
        headers=auth_headers()
    )
    assert response.status_code == 200
    data = response.json()
    assert [v["id"] for v in data["visits"]] == ["v1"]
    assert data["visits"][0]["can_review"] is True
    assert data["stats"] == {"total": 3, "pending": 2, "approved": 1, "flagged": 0}
    assert data["reps"] == ["Asha", "Ravi"]
    assert data["reasons"]["customer_requested_outside"] == "Customer Outside"


def test_malformed_rows_are_skipped(client, backend):
    backend.visits = [{"id": "broken", "exception_reason": "gps_drift"}, make_visit("v1", exception_reason="other")]
    response = client.get(f"{PREFIX}/visits/exceptions", headers=auth_headers())
    assert response.status_code == 200
    assert [v["id"] for v in response.json()["visits"]] == ["v1"]


# ============================================================================
# APROBAR / MARCAR
# ============================================================================

def test_approve_sends_single_action_and_returns_refetched_queue(client, backend):
    backend.visits = [
        make_visit("v1", exception_reason="gps_drift"),
        make_visit("v2", exception_reason="other"),
    ]
    before = client.get(f"{PREFIX}/visits/exceptions", headers=auth_headers()).json()

    response = client.patch(
        f"{PREFIX}/visits/v1/approve",
        json={"manager_note": "looks fine"},
        headers=auth_headers()
    )
    assert response.status_code == 200
    assert backend.patches("/api/manager/visits/v1") == [{"approve": True, "managerNote": "looks fine"}]

    data = response.json()
    v1 = next(v for v in data["visits"] if v["id"] == "v1")
    assert v1["state"] == "exception_approved"
    assert v1["can_review"] is False
    assert data["stats"]["pending"] == before["stats"]["pending"] - 1


def test_flag_without_note_omits_manager_note(client, backend):
    backend.visits = [make_visit("v1", exception_reason="road_blocked")]
    response = client.patch(f"{PREFIX}/visits/v1/flag", headers=auth_headers())
    assert response.status_code == 200
    assert backend.patches("/api/manager/visits/v1") == [{"flag": True}]
    assert response.json()["visits"][0]["state"] == "exception_flagged"


def test_second_review_is_rejected(client, backend):
    backend.visits = [make_visit("v1", exception_reason="gps_drift")]
    assert client.patch(f"{PREFIX}/visits/v1/approve", headers=auth_headers()).status_code == 200

    response = client.patch(f"{PREFIX}/visits/v1/flag", headers=auth_headers())
    assert response.status_code == 409
    assert response.json()["ok"] is False
    assert response.json()["kind"] == "action_rejected"
    assert len(backend.patches("/api/manager/visits/v1")) == 1


def test_review_unknown_visit_is_404(client, backend):
    response = client.patch(f"{PREFIX}/visits/missing/approve", headers=auth_headers())
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


def test_backend_rejection_surfaces_message(client, backend):
    backend.visits = [make_visit("v1", exception_reason="gps_drift")]
    backend.patch_response = httpx.Response(409, json={"ok": False, "error": "Visit already reviewed"})

    response = client.patch(f"{PREFIX}/visits/v1/approve", headers=auth_headers())
    assert response.status_code == 409
    assert response.json() == {"ok": False, "error": "Visit already reviewed", "kind": "action_rejected"}


def test_backend_down_is_network_failure(client, backend):
    backend.visits = [make_visit("v1", exception_reason="gps_drift")]
    backend.patch_response = httpx.Response(500, text="boom")

    response = client.patch(f"{PREFIX}/visits/v1/approve", headers=auth_headers())
    assert response.status_code == 502
    assert response.json()["kind"] == "network_failure"


def test_manager_note_too_long_is_validation_error(client, backend):
    backend.visits = [make_visit("v1", exception_reason="gps_drift")]
    response = client.patch(
        f"{PREFIX}/visits/v1/approve",
        json={"manager_note": "x" * 5001},
        headers=auth_headers()
    )
    assert response.status_code == 422
    assert backend.patches("/api/manager/visits/") == []


# ============================================================================
# HISTORIAL DE TIENDA
# ============================================================================

def test_shop_history(client, backend):
    backend.visits = [
        make_visit("v1", shop_id="s1", started_at="2026-03-01T09:00:00Z", ended_at="2026-03-01T09:20:00Z"),
        make_visit("v2", shop_id="s1", started_at="2026-03-02T09:00:00Z", ended_at="2026-03-02T09:40:00Z"),
        make_visit("v3", shop_id="s2"),
    ]
    response = client.get(f"{PREFIX}/shops/s1/visits", headers=auth_headers())
    assert response.status_code == 200
    data = response.json()
    assert data["total_visits"] == 2
    assert data["avg_duration_minutes"] == 30
    assert [v["id"] for v in data["visits"]] == ["v1", "v2"]
