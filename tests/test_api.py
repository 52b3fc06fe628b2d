"""Tests for API endpoints (no external API keys required)."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from conftest import make_words
from topic_outline.api.main import app, run
from topic_outline.errors import PersistenceFailure
from topic_outline.oracle.scripted import ScriptedTopicOracle
from topic_outline.session import OutlineSession

client = TestClient(app)


@pytest.fixture
def session(tmp_path, test_settings):
    """A started session on a 60-word transcript, patched into the routes."""
    transcript = tmp_path / "meeting.txt"
    transcript.write_text(make_words(60))
    oracle = ScriptedTopicOracle(
        classifications=["FIT", "NEW"], related=["NO"], meeting_summaries=["## Kickoff"]
    )
    session = OutlineSession(transcript, oracle, test_settings)
    session.start()
    with patch("topic_outline.api.routes.outline.get_session", return_value=session):
        yield session


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_outline_snapshot(session):
    response = client.get("/api/outline")

    assert response.status_code == 200
    data = response.json()
    assert data["transcriptFile"] == "meeting.txt"
    assert len(data["segments"]) == 2
    assert data["headers"][0]["segments"] == [s["id"] for s in data["segments"]]
    assert data["currentHeaderId"] == data["headers"][0]["id"]


def test_post_content_creates_live_segment(session):
    response = client.post("/api/content", json={"text": make_words(10, start=60)})

    assert response.status_code == 200
    body = response.json()
    assert body["wordCount"] == 70
    assert body["segment"]["startWordIndex"] == 60
    assert body["segment"]["endWordIndex"] == 69
    assert body["segment"]["source"] == "live-transcription"
    # NEW and unrelated: filed under a second header before the response.
    assert len(session.outline.headers) == 2
    assert session.transcript_path.read_text().split() == make_words(70).split()


def test_post_blank_content(session):
    response = client.post("/api/content", json={"text": "   "})

    assert response.status_code == 200
    assert response.json() == {"segment": None, "wordCount": 60}


def test_post_content_requires_text():
    """Missing field is rejected before the session is touched."""
    response = client.post("/api/content", json={})
    assert response.status_code == 422


def test_segment_detail(session):
    segment = session.outline.segments[1]

    response = client.get(f"/api/outline/segments/{segment.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["text"] == make_words(10, start=50)
    assert body["headerId"] == session.outline.headers[0].id
    assert body["subHeaderId"] is None
    assert body["segment"]["id"] == segment.id


def test_segment_detail_not_found(session):
    response = client.get("/api/outline/segments/segment-missing")
    assert response.status_code == 404


def test_post_content_unwritable_transcript(session):
    with patch.object(session, "on_new_content", side_effect=PersistenceFailure("disk full")):
        response = client.post("/api/content", json={"text": "hello there"})

    assert response.status_code == 503
    assert "disk full" in response.json()["detail"]


def test_summary_starts_empty(session):
    response = client.get("/api/summary")

    assert response.status_code == 200
    assert response.json() == {"summary": ""}


def test_refresh_summary(session):
    response = client.post("/api/summary")

    assert response.status_code == 200
    assert response.json() == {"summary": "## Kickoff"}
    assert client.get("/api/summary").json() == {"summary": "## Kickoff"}
    assert session.transcript_path.with_name("meeting_summary.md").read_text() == "## Kickoff"


def test_lifespan_builds_session_off_the_event_loop(test_settings):
    settings = test_settings.model_copy(
        update={"watch_transcript": True, "poll_interval_seconds": 0.01}
    )
    watched = MagicMock()
    on_event_loop: list[bool] = []

    def fake_get_session():
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            on_event_loop.append(False)
        else:
            on_event_loop.append(True)
        return watched

    with (
        patch("topic_outline.api.main.settings", settings),
        patch("topic_outline.api.main.get_session", side_effect=fake_get_session),
    ):
        with TestClient(app) as local_client:
            assert local_client.get("/health").status_code == 200

    assert on_event_loop == [False]
    watched.watch.assert_called_once()


def test_run_serves_configured_host_and_port(test_settings):
    settings = test_settings.model_copy(update={"api_host": "127.0.0.1", "api_port": 8123})

    with (
        patch("topic_outline.api.main.settings", settings),
        patch("topic_outline.api.main.uvicorn.run") as serve,
    ):
        run()

    serve.assert_called_once_with(app, host="127.0.0.1", port=8123)
