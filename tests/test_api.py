# tests/test_api.py
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from api.dependencies.auth import AUTH_COOKIE, get_current_user_id
from api.dependencies.engine import get_knowledge_engine
from api.main import app
from services.knowledge.engine import KnowledgeEngine

from conftest import topic_payload

SECRET = "test-secret"


@pytest.fixture
def knowledge_engine(session_factory, graph_store, generator, clock):
    return KnowledgeEngine(session_factory, graph_store, generator, clock=clock)


@pytest.fixture
def client(knowledge_engine, monkeypatch):
    monkeypatch.setenv("NEXTAUTH_SECRET", SECRET)
    monkeypatch.delenv("EXPECTED_AUD", raising=False)
    app.dependency_overrides[get_knowledge_engine] = lambda: knowledge_engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(user_id="u1"):
    token = jwt.encode({"sub": user_id}, SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_requests_without_token_are_rejected(client):
    assert client.post("/chat", json={"message": "black hole"}).status_code == 401

    bad = jwt.encode({"sub": "u1"}, "other-secret", algorithm="HS256")
    response = client.get("/ship-log", headers={"Authorization": f"Bearer {bad}"})
    assert response.status_code == 401


def test_cookie_token_is_accepted(client):
    client.cookies.set(AUTH_COOKIE, jwt.encode({"sub": "u1"}, SECRET, algorithm="HS256"))
    response = client.get("/ship-log")
    assert response.status_code == 200
    assert response.json() == []


def test_chat_then_read_topic(client, generator):
    generator.queue(topic_payload("Black Hole", content="Past the [[Event Horizon]].", chat="Found it."))

    response = client.post("/chat", json={"message": "What is a black hole?"}, headers=_auth())
    assert response.status_code == 200
    body = response.json()
    assert body["is_new"] is True
    assert body["answer"].startswith("Found it.")

    topic = client.get("/topic", params={"id": body["topic_id"]}, headers=_auth())
    assert topic.status_code == 200
    assert topic.json()["name"] == "black hole"

    log = client.get("/ship-log", headers=_auth()).json()
    assert [entry["name"] for entry in log] == ["black hole"]

    star_map = client.get("/star-map", headers=_auth()).json()
    assert {node["group"] for node in star_map["nodes"]} == {"known", "mystery"}


def test_error_mapping(client, generator):
    assert client.post("/chat", json={"message": "   "}, headers=_auth()).status_code == 400
    assert client.get("/topic", params={"name": "wormhole"}, headers=_auth()).status_code == 404

    generator.queue(topic_payload("Quasar"))
    created = client.post("/chat", json={"message": "quasar"}, headers=_auth("u1")).json()
    locked = client.get("/topic", params={"id": created["topic_id"]}, headers=_auth("u2"))
    assert locked.status_code == 403

    generator.queue(ConnectionError("provider down"))
    assert client.post("/chat", json={"message": "pulsar"}, headers=_auth()).status_code == 503


def test_wiki_submission(client):
    response = client.post(
        "/wiki",
        json={"title": "Dark Matter", "content": "Unseen mass near a [[Black Hole]]."},
        headers=_auth(),
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert client.post("/wiki", json={"title": "", "content": "x"}, headers=_auth()).status_code == 400


def test_user_override(client, generator):
    app.dependency_overrides[get_current_user_id] = lambda: "override-user"
    generator.queue(topic_payload("Comet"))
    assert client.post("/chat", json={"message": "comet"}).status_code == 200
    assert client.get("/ship-log").json()[0]["name"] == "comet"
