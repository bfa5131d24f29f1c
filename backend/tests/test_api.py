import pytest

from qbadmin.api import dependencies
from qbadmin.infra.gateway.client import SessionExpiry
from qbadmin.infra.tokens.memory import MemoryTokenStore
from qbadmin.main import app
from tests.fake_backend import FakeBackend, fail, ok
from tests.http_client import SyncASGIClient

FILES = {
    "files": [
        {"id": 1, "name": "Algebra", "parse_status": "completed", "chapter_count": 4},
        {"id": 2, "name": "Geometry", "parse_status": "pending"},
    ],
    "total": 2,
}


@pytest.fixture()
def wired(monkeypatch):
    backend = FakeBackend()
    store = MemoryTokenStore({"wx_admin_token": "token-1"})
    monkeypatch.setattr(dependencies, "get_transport", lambda: backend.transport())
    monkeypatch.setattr(dependencies, "get_token_store", lambda: store)
    monkeypatch.setattr(dependencies, "get_session_expiry", lambda: SessionExpiry())
    return backend, store


def test_console_requires_stored_session(wired):
    backend, store = wired
    store.remove("wx_admin_token")

    resp = SyncASGIClient(app).get("/console/files")

    assert resp.status_code == 401
    assert resp.json()["detail"] == {"message": "Please log in first", "redirect": "/login"}
    assert backend.requests == []


def test_file_list_returns_screen_snapshot(wired):
    backend, _ = wired
    backend.on("GET", "/admin/markdown-files", ok(FILES))

    resp = SyncASGIClient(app).get("/console/files", params={"status": "completed", "limit": 5})

    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 2
    assert body["limit"] == 5
    assert body["summary"] == {"completed": 1, "pending": 1, "chapters": 4}
    assert [row["name"] for row in body["rows"]] == ["Algebra", "Geometry"]
    assert backend.requests[0].headers["authorization"] == "Bearer token-1"
    assert backend.requests[0].url.params["status"] == "completed"


def test_delete_without_confirm_asks_first(wired):
    backend, _ = wired
    backend.on("GET", "/admin/markdown-files", ok(FILES))
    backend.on("DELETE", "/admin/markdown-files/2", ok())

    resp = SyncASGIClient(app).delete("/console/files/2")

    body = resp.json()
    assert resp.status_code == 200
    assert body["ok"] is False
    assert body["confirmRequired"] is True
    assert body["prompt"] == {"title": "Confirm deletion", "content": "Delete document “Geometry”?"}
    assert backend.mutations() == []


def test_confirmed_delete_runs_and_resyncs(wired):
    backend, _ = wired
    backend.on("GET", "/admin/markdown-files", ok(FILES))
    backend.on("DELETE", "/admin/markdown-files/2", ok())

    resp = SyncASGIClient(app).delete("/console/files/2", params={"confirm": "true"})

    body = resp.json()
    assert body["ok"] is True
    assert body["confirmRequired"] is False
    assert [item["content"] for item in body["notifications"]] == ["Deleted"]
    assert [request.method for request in backend.requests] == ["GET", "DELETE", "GET"]


def test_unknown_record_is_404(wired):
    backend, _ = wired
    backend.on("GET", "/admin/markdown-files", ok(FILES))

    resp = SyncASGIClient(app).post("/console/files/99/parse")

    assert resp.status_code == 404
    assert backend.mutations() == []


def test_backend_session_expiry_redirects_to_login(wired):
    backend, store = wired
    backend.on("GET", "/admin/markdown-files", fail(401, "token expired"))

    body = SyncASGIClient(app).get("/console/files").json()

    assert body["redirect"] == "/login"
    assert body["phase"] == "errored"
    assert [item["level"] for item in body["notifications"]] == ["error"]
    assert store.get("wx_admin_token") is None


def test_login_stores_token(wired):
    backend, store = wired
    store.remove("wx_admin_token")
    backend.on(
        "POST",
        "/auth/login",
        ok({"accessToken": "fresh", "refreshToken": "r", "user": {"id": 1, "username": "admin"}}),
    )

    body = SyncASGIClient(app).post("/auth/login", json={"username": "admin", "password": "secret"}).json()

    assert body["ok"] is True
    assert body["data"]["user"]["username"] == "admin"
    assert store.get("wx_admin_token") == "fresh"


def test_login_with_blank_fields_is_rejected_locally(wired):
    backend, _ = wired

    body = SyncASGIClient(app).post("/auth/login", json={"username": " ", "password": ""}).json()

    assert body["ok"] is False
    assert body["fieldErrors"]["username"] == "Please enter a username"
    assert backend.requests == []


def _failed_second_page(request):
    params = request.url.params
    if params.get("status") == "failed" and params.get("page") == "2":
        return ok({"files": [{"id": 112, "name": "Broken", "parse_status": "failed"}], "total": 11})
    return ok({"files": [], "total": 0})


def test_parse_finds_record_on_filtered_second_page(wired):
    backend, _ = wired
    backend.on("GET", "/admin/markdown-files", _failed_second_page)
    backend.on("POST", "/admin/markdown-files/112/parse", ok({"chapter_count": 2}))
    query = {"status": "failed", "page": 2, "limit": 10}
    client = SyncASGIClient(app)

    listed = client.get("/console/files", params=query).json()
    resp = client.post("/console/files/112/parse", params=query)

    assert [row["id"] for row in listed["rows"]] == [112]
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert len(backend.calls("POST", "/admin/markdown-files/112/parse")) == 1
    reload = backend.calls("GET", "/admin/markdown-files")[-1]
    assert reload.url.params["status"] == "failed"


def test_essay_delete_uses_list_filters(wired):
    backend, _ = wired

    def essays(request):
        if request.url.params.get("keyword") == "war":
            return ok({"list": [{"id": 5, "title": "War", "org_id": 1, "subject_id": 1, "subject_chapter_id": 1}], "total": 1})
        return ok({"list": [], "total": 0})

    backend.on("GET", "/admin/essays", essays)
    backend.on("DELETE", "/admin/essays/5", ok())

    resp = SyncASGIClient(app).delete("/console/essays/5", params={"keyword": "war", "confirm": "true"})

    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert len(backend.calls("DELETE", "/admin/essays/5")) == 1
