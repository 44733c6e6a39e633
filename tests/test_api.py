"""API tests for game and quiz routes."""

import random

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_manager
from app.core.config import settings
from app.main import create_app
from app.models.catalog import Catalog
from app.services.quiz_session import QuizSessionManager
from app.services.round_source import RoundFetchError
from app.services.session_store import MemoryBlobStore
from tests.helpers import make_catalog, make_entry


@pytest.fixture
def client():
    app = create_app(catalog=make_catalog(), store=MemoryBlobStore(), rng=random.Random(21))
    with TestClient(app) as c:
        yield c


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "games": 12}


def test_random_round(client):
    r = client.get("/api/game/random")
    assert r.status_code == 200
    body = r.json()
    assert len(body["options"]) == settings.OPTION_COUNT
    assert body["correct_answer"] in body["options"]

    r = client.get("/api/game/random", params={"option_count": 3})
    assert len(r.json()["options"]) == 3

    assert client.get("/api/game/random", params={"option_count": 1}).status_code == 422


def test_stats(client):
    r = client.get("/api/game/stats")
    assert r.status_code == 200
    assert r.json()["total_games"] == 12


def test_resume_creates_session_with_round(client):
    r = client.get("/api/quiz/player-1")
    assert r.status_code == 200
    view = r.json()
    assert view["current_question"] == 1
    assert view["answered"] is False
    assert view["round"]["question"] == 1
    assert len(view["round"]["options"]) == settings.OPTION_COUNT
    # ответ не раскрываем до выбора варианта
    assert view["correct_answer"] is None

    # повторный заход: тот же раунд
    again = client.get("/api/quiz/player-1").json()
    assert again["session_id"] == view["session_id"]
    assert again["round"] == view["round"]


def test_answer_then_reload_shows_answer(client):
    view = client.get("/api/quiz/p2").json()
    option = view["round"]["options"][0]

    r = client.post("/api/quiz/p2/answer", json={"selected_option": option})
    assert r.status_code == 200
    result = r.json()
    assert result["selected_option"] == option
    assert result["is_correct"] == (option == result["correct_answer"])

    reloaded = client.get("/api/quiz/p2").json()
    assert reloaded["answered"] is True
    assert reloaded["selected_option"] == option
    assert reloaded["correct_answer"] == result["correct_answer"]

    # повторная отправка не добавляет очков
    again = client.post("/api/quiz/p2/answer", json={"selected_option": result["correct_answer"]}).json()
    assert again["score"] == result["score"]


def test_full_quiz_flow(client):
    view = client.get("/api/quiz/p3").json()
    correct = 0

    for i in range(settings.MAX_ROUNDS):
        assert view["current_question"] == i + 1
        option = view["round"]["options"][i % len(view["round"]["options"])]
        result = client.post("/api/quiz/p3/answer", json={"selected_option": option}).json()
        correct += result["is_correct"]

        view = client.post("/api/quiz/p3/next").json()

    assert view["is_complete"] is True
    assert view["score"] == correct
    assert view["summary"]["score"] == correct
    assert view["summary"]["max_rounds"] == settings.MAX_ROUNDS
    assert view["round"] is None

    # завершённый квиз: next ничего не ломает, ответить нельзя
    assert client.post("/api/quiz/p3/next").json()["is_complete"] is True
    assert client.post("/api/quiz/p3/answer", json={"selected_option": "x"}).status_code == 409


def test_next_before_answer(client):
    client.get("/api/quiz/p4")
    assert client.post("/api/quiz/p4/next").status_code == 409


def test_answer_without_session(client):
    r = client.post("/api/quiz/nobody/answer", json={"selected_option": "Doom"})
    assert r.status_code == 404


def test_restart_and_delete(client):
    first = client.get("/api/quiz/p5").json()

    r = client.post("/api/quiz/p5")
    assert r.status_code == 201
    assert r.json()["session_id"] != first["session_id"]

    assert client.delete("/api/quiz/p5").status_code == 204
    assert client.post("/api/quiz/p5/next").status_code == 404


def test_invalid_client_id(client):
    assert client.get("/api/quiz/bad id!").status_code == 422


def test_empty_catalog_surfaces_retry():
    catalog = Catalog([make_entry(1, "Ancient", 1970, 10)])
    app = create_app(catalog=catalog, store=MemoryBlobStore(), rng=random.Random(1))
    with TestClient(app) as c:
        assert c.get("/api/game/random").status_code == 503

        r = c.get("/api/quiz/p6")
        assert r.status_code == 503
        assert r.json()["detail"] == "No games found with the specified criteria"


class TimeoutSource:
    async def fetch(self, option_count: int = 4):
        raise RoundFetchError("timeout", "Request timeout after 10s")


def test_fetch_timeout_maps_to_504():
    app = create_app(
        catalog=make_catalog(),
        store=MemoryBlobStore(),
        round_source=TimeoutSource(),
    )
    with TestClient(app) as c:
        r = c.get("/api/quiz/p7")
        assert r.status_code == 504
        assert "timed out" in r.json()["detail"]


class ForgetfulManager(QuizSessionManager):
    """Менеджер, который "принимает" ответ, но ничего не записывает."""

    async def submit_answer(self, session, selected_option):
        return session


def test_unrecorded_answer_is_server_error(client):
    view = client.get("/api/quiz/p8").json()
    store = client.app.state.store
    client.app.dependency_overrides[get_manager] = lambda: ForgetfulManager(
        store, key=f"{settings.SESSION_KEY_PREFIX}:p8",
    )
    try:
        r = client.post("/api/quiz/p8/answer", json={"selected_option": view["round"]["options"][0]})
    finally:
        client.app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json()["detail"] == "Answer was not recorded"
