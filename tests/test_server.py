import pytest
from fastapi.testclient import TestClient

from conftest import make_payload
from rewiki.config import Settings
from rewiki.server import app, get_session
from rewiki.session import ArticleSession


@pytest.fixture
def make_client(store, capabilities_factory):
    def _make(**kwargs):
        session = ArticleSession(
            capabilities_factory(**kwargs), store=store, settings=Settings(history_limit=10)
        )
        app.dependency_overrides[get_session] = lambda: session
        return TestClient(app), session

    yield _make
    app.dependency_overrides.clear()


def test_health(make_client):
    client, _ = make_client()
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_cors_wildcard_disables_credentials():
    cors = next(m for m in app.user_middleware if m.cls.__name__ == "CORSMiddleware")
    assert cors.kwargs["allow_origins"] == ["*"]
    assert cors.kwargs["allow_credentials"] is False


def test_create_article(make_client):
    client, session = make_client()

    resp = client.post("/articles", json={"topic": "Black Holes", "language": "en"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["topic"] == "Black Holes"
    assert body["language"] == "en"
    assert session.history[0].identifier == body["identifier"]


def test_create_article_rejects_unknown_language(make_client):
    client, _ = make_client()
    resp = client.post("/articles", json={"topic": "Black Holes", "language": "fr"})
    assert resp.status_code == 400


def test_create_article_reports_generation_failure(make_client):
    client, session = make_client(article_responses=["not json"])
    resp = client.post("/articles", json={"topic": "Black Holes"})
    assert resp.status_code == 502
    assert session.history == []


def test_create_article_reports_invalid_payload(make_client):
    client, _ = make_client(article_responses=[make_payload(sections=[])])
    resp = client.post("/articles", json={"topic": "Black Holes"})
    assert resp.status_code == 502
    assert "sections" in resp.json()["detail"]


def test_history_listing_and_lookup(make_client):
    client, _ = make_client()
    created = client.post("/articles", json={"topic": "Black Holes"}).json()

    listing = client.get("/history").json()
    assert listing == [
        {
            "identifier": created["identifier"],
            "topic": "Black Holes",
            "language": "es",
            "last_updated": created["last_updated"],
        }
    ]

    found = client.get(f"/history/{created['identifier']}")
    assert found.status_code == 200
    assert found.json()["summary"] == created["summary"]
    assert client.get("/history/unknown").status_code == 404


def test_revision_endpoint_applies_accepted_edit(make_client):
    client, _ = make_client(
        revision_responses=[
            {"accepted": True, "new_content": "Fresh body.", "reasoning": "Checked."}
        ]
    )
    created = client.post("/articles", json={"topic": "Black Holes"}).json()

    resp = client.post(
        f"/articles/{created['identifier']}/revisions",
        json={"change_request": "Clarify", "edit_kind": "fix", "selected_excerpt": "massive stars"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["verdict"]["accepted"] is True
    assert body["article"]["sections"][0]["body"] == "Fresh body."
    assert body["article"]["change_log"].endswith("| Fixed info")


def test_revision_endpoint_unknown_article(make_client):
    client, _ = make_client()
    resp = client.post("/articles/nope/revisions", json={"change_request": "x"})
    assert resp.status_code == 404


def test_revision_endpoint_rejects_blank_request(make_client):
    client, _ = make_client()
    created = client.post("/articles", json={"topic": "Black Holes"}).json()

    resp = client.post(
        f"/articles/{created['identifier']}/revisions", json={"change_request": "   "}
    )

    assert resp.status_code == 400
    assert "change_request" in resp.json()["detail"]


def test_revision_endpoint_targets_requested_article(make_client):
    client, session = make_client(
        article_responses=[make_payload(), make_payload(topic="Quasars")],
        revision_responses=[
            {"accepted": True, "new_content": "Fresh body.", "reasoning": "Checked."}
        ],
    )
    black_holes = client.post("/articles", json={"topic": "Black Holes"}).json()
    quasars = client.post("/articles", json={"topic": "Quasars"}).json()

    resp = client.post(
        f"/articles/{black_holes['identifier']}/revisions",
        json={"change_request": "Clarify", "selected_excerpt": "massive stars"},
    )

    body = resp.json()
    assert body["article"]["topic"] == "Black Holes"
    assert body["article"]["sections"][0]["body"] == "Fresh body."
    assert session.current.identifier == quasars["identifier"]
    assert session.history[0].identifier == black_holes["identifier"]
