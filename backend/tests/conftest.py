# avatarhub/backend/tests/conftest.py
import os
import sys
import tempfile
import importlib
import uuid

import pytest
from fastapi.testclient import TestClient


def _purge_modules(prefixes: tuple[str, ...]) -> None:
    """Remove cached modules so env var overrides take effect cleanly."""
    for name in list(sys.modules.keys()):
        if name.startswith(prefixes):
            sys.modules.pop(name, None)


def _ensure_project_on_syspath() -> None:
    """Make sure the backend root is importable without an installed package."""
    backend_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    if backend_root not in sys.path:
        sys.path.insert(0, backend_root)


def _load_app():
    _ensure_project_on_syspath()
    _purge_modules(("avatarhub", "avatarhub."))
    m = importlib.import_module("avatarhub.main")
    app = getattr(m, "app", None)
    if app is None:
        raise RuntimeError("Could not find FastAPI 'app' in avatarhub.main")
    return app


@pytest.fixture(scope="session", autouse=True)
def app():
    """
    Session-scoped FastAPI app with deterministic temp paths.
    IMPORTANT: env vars must be set BEFORE importing avatarhub, because
    config values are read at import time.
    """
    tmp = tempfile.TemporaryDirectory()
    root = tmp.name

    uploads = os.path.join(root, "uploads")
    os.makedirs(uploads, exist_ok=True)

    os.environ["UPLOAD_DIR"] = uploads
    os.environ["SQLITE_PATH"] = os.path.join(root, "test.db")
    os.environ["PUBLIC_BASE_URL"] = ""
    os.environ["SWEEP_TOKEN"] = "test-sweep-token"
    os.environ["KEY_ENCRYPTION_SECRET"] = "test-secret"

    # Outbound targets are fake hosts; every call is intercepted by `outbound`
    os.environ["OPENAI_BASE_URL"] = "http://openai.test/v1"
    os.environ["KIE_AI_BASE_URL"] = "http://kie.test"
    os.environ["HEYGEN_BASE_URL"] = "http://heygen.test"
    os.environ["ELEVENLABS_BASE_URL"] = "http://elevenlabs.test"
    os.environ["PROVIDER_TIMEOUT_S"] = "5"

    for env_name in ("OPENAI_API_KEY", "KIE_AI_API_KEY", "HEYGEN_API_KEY", "ELEVENLABS_API_KEY"):
        os.environ.pop(env_name, None)

    _app = _load_app()
    setattr(_app.state, "_tmpdir", tmp)  # keep tmp alive
    return _app


@pytest.fixture()
def client(app):
    return TestClient(app)


# -------------------- Users --------------------

def register(client, *, tier="pro", admin_role=None, name="Tester"):
    """Register a fresh user and return ``(headers, user)``.

    The tier is set directly in the DB so tests are not bound by the free
    tier's single-avatar limit.
    """
    from avatarhub.storage import db

    email = f"{uuid.uuid4().hex[:12]}@example.com"
    r = client.post("/v1/auth/register", json={"email": email, "password": "secret123", "name": name})
    assert r.status_code == 200, r.text
    data = r.json()
    user = data["user"]

    con = db()
    con.execute("UPDATE users SET subscription_tier_id = ? WHERE id = ?", (tier, user["id"]))
    # Only the explicit role counts; the very first account is bootstrapped as super_admin
    con.execute("DELETE FROM admin_users WHERE user_id = ?", (user["id"],))
    if admin_role:
        con.execute(
            "INSERT INTO admin_users(user_id, role, is_active, created_at) VALUES (?, ?, 1, '2024-01-01T00:00:00Z')",
            (user["id"], admin_role),
        )
    con.commit()
    con.close()
    return {"Authorization": f"Bearer {data['token']}"}, user


@pytest.fixture()
def user_headers(client):
    headers, _ = register(client)
    return headers


@pytest.fixture()
def make_user(client):
    def _make(**kwargs):
        return register(client, **kwargs)

    return _make


@pytest.fixture()
def provider_keys(monkeypatch):
    """Platform keys for every provider, so handlers never hit ProviderKeyMissing."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-platform")
    monkeypatch.setenv("KIE_AI_API_KEY", "kie-platform")
    monkeypatch.setenv("HEYGEN_API_KEY", "heygen-platform")
    monkeypatch.setenv("ELEVENLABS_API_KEY", "xi-platform")
    return True


@pytest.fixture()
def avatar(client, user_headers):
    r = client.post("/v1/avatars", json={
        "name": "Sofia",
        "age": 28,
        "origin_country": "Spain",
        "primary_language": "Spanish",
        "personality_traits": ["warm", "curious"],
        "backstory": "Grew up in Seville.",
    }, headers=user_headers)
    assert r.status_code == 200, r.text
    return r.json()["avatar"]


# -------------------- Mock outbound HTTP (httpx) --------------------

class FakeOutbound:
    """Scripted replacement for httpx.AsyncClient.

    Routes are ``(method, url_substring) -> response or callable(request)``;
    the most recently added matching route wins. Every call is recorded in
    ``calls`` as a dict with method, url and the request kwargs.
    """

    def __init__(self):
        self.routes = []
        self.calls = []
        # DNS answers for user-supplied URLs; unlisted hosts look public
        self.hosts = {}

    def on(self, method, fragment, response=None, *, json=None, status=200, content=None, headers=None):
        if response is None:
            response = (status, json, content, headers)
        self.routes.insert(0, (method, fragment, response))
        return self

    async def resolve(self, host):
        return self.hosts.get(host, ["93.184.216.34"])

    def calls_to(self, fragment, method=None):
        return [c for c in self.calls if fragment in c["url"] and (method is None or c["method"] == method)]

    def handle(self, method, url, **kwargs):
        import httpx

        call = {"method": method, "url": str(url), **kwargs}
        self.calls.append(call)
        for route_method, fragment, response in self.routes:
            if route_method == method and fragment in str(url):
                if callable(response):
                    response = response(call)
                if isinstance(response, httpx.Response):
                    return response
                status, json_data, content, headers = response
                if content is not None:
                    return httpx.Response(status, content=content, headers=headers or {})
                return httpx.Response(status, json=json_data if json_data is not None else {}, headers=headers or {})
        return httpx.Response(404, json={"error": f"no fake route for {method} {url}"})


@pytest.fixture()
def outbound(monkeypatch):
    """
    Mocks outbound calls to OpenAI, KIE.AI, HeyGen, ElevenLabs and media
    downloads. Every adapter creates ``httpx.AsyncClient`` per request, so
    patching the class is enough.
    Host lookups for user-supplied URLs are answered from ``hosts``.
    """
    import httpx

    from avatarhub.providers import http as provider_http

    fake = FakeOutbound()

    class DummyAsyncClient:
        def __init__(self, *a, **k):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def post(self, url, *a, **k):
            return fake.handle("POST", url, **k)

        async def get(self, url, *a, **k):
            return fake.handle("GET", url, **k)

        async def delete(self, url, *a, **k):
            return fake.handle("DELETE", url, **k)

    monkeypatch.setattr(httpx, "AsyncClient", DummyAsyncClient, raising=True)
    monkeypatch.setattr(provider_http, "_resolve", fake.resolve, raising=True)
    return fake


def chat_reply(content):
    """OpenAI chat completion body with a single assistant message."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}
