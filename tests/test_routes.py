"""HTTP surface: camelCase payloads, status codes and error bodies."""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from daily_coin.core.config import settings
from daily_coin.core.dependencies import get_coin_service, get_hot_question_service
from daily_coin.core.exceptions import GenerationError
from daily_coin.domains.coin.prompts import AnalysisField

FP = {"deviceFingerprint": "browser-123"}


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestCoinRoutes:

    def test_today_is_camel_case_and_cached(self, client):
        first = client.get("/api/coin/today", params=FP)
        second = client.get("/api/coin/today", params=FP)

        assert first.status_code == 200
        body = first.json()
        assert set(body) == {"id", "coinResults", "analysis", "isCached"}
        assert body["isCached"] is False
        assert second.json()["isCached"] is True
        assert second.json()["coinResults"] == body["coinResults"]

    def test_missing_fingerprint(self, client):
        response = client.get("/api/coin/today")
        assert response.status_code == 422
        assert response.json()["status"] == "fail"

    def test_empty_fingerprint(self, client):
        response = client.get("/api/coin/today", params={"deviceFingerprint": ""})
        assert response.status_code == 422

    def test_field_before_toss(self, client):
        response = client.get("/api/coin/field", params={**FP, "fieldName": "color"})
        assert response.status_code == 404
        assert response.json()["status"] == "fail"

    def test_unknown_field_name(self, client):
        client.get("/api/coin/today", params=FP)
        response = client.get("/api/coin/field", params={**FP, "fieldName": "weather"})
        assert response.status_code == 422

    def test_field_generated_then_cached(self, client, generator):
        client.get("/api/coin/today", params=FP)

        first = client.get("/api/coin/field", params={**FP, "fieldName": "color"})
        second = client.get("/api/coin/field", params={**FP, "fieldName": "color"})

        assert first.status_code == 200
        assert first.json()["fieldName"] == "color"
        assert first.json()["isCached"] is False
        assert second.json()["isCached"] is True
        assert second.json()["value"] == first.json()["value"]
        assert generator.generate.await_count == 1

    def test_generation_failure_is_502(self, client, generator):
        client.get("/api/coin/today", params=FP)
        generator.generate.side_effect = GenerationError("upstream")

        response = client.get("/api/coin/field", params={**FP, "fieldName": "mood"})

        assert response.status_code == 502
        assert response.json()["status"] == "error"

    def test_full_analysis(self, client, generator):
        client.get("/api/coin/today", params=FP)
        generator.generate.return_value = json.dumps(
            {field.value: "好" for field in AnalysisField}, ensure_ascii=False
        )

        response = client.get("/api/coin/analysis", params=FP)

        assert response.status_code == 200
        assert set(response.json()["analysis"]) == {field.value for field in AnalysisField}

    def test_history(self, client):
        client.get("/api/coin/today", params=FP)
        response = client.get("/api/coin/history", params=FP)

        assert response.status_code == 200
        item = response.json()[0]
        assert item["type"] == "daily_fortune"
        assert item["tossDate"] == "2024-01-01"

    @pytest.mark.parametrize("limit", [0, 51])
    def test_history_limit_bounds(self, client, limit):
        response = client.get("/api/coin/history", params={**FP, "limit": limit})
        assert response.status_code == 422


class TestExplainRoute:

    def test_answer_has_no_message(self, client):
        response = client.post(
            "/api/coin/explain",
            json={"deviceFingerprint": "browser-123", "question": "要不要换工作"},
        )
        assert response.status_code == 200
        assert response.json()["limitExceeded"] is False
        assert "message" not in response.json()

    def test_limit_exceeded(self, client, generator):
        payload = {"deviceFingerprint": "browser-123", "question": "问题", "coinResults": [0, 0, 0, 0, 0, 0]}
        for _ in range(6):
            client.post("/api/coin/explain", json=payload)

        response = client.post("/api/coin/explain", json=payload)

        body = response.json()
        assert response.status_code == 200
        assert body["limitExceeded"] is True
        assert body["message"] == body["explanation"]
        assert generator.generate.await_count == 6

    def test_empty_question(self, client):
        response = client.post("/api/coin/explain", json={"deviceFingerprint": "x", "question": ""})
        assert response.status_code == 422


class TestHotQuestionRoutes:

    def test_empty_ranking(self, client):
        response = client.get("/api/hot-questions/today")
        assert response.json() == {"hotQuestions": []}

    def test_storage_failure_degrades_to_empty(self, client):
        from daily_coin.main import app

        broken = MagicMock()
        broken.get_today_hot_questions = AsyncMock(side_effect=RuntimeError("db down"))
        app.dependency_overrides[get_hot_question_service] = lambda: broken

        response = client.get("/api/hot-questions/today")

        assert response.status_code == 200
        assert response.json() == {"hotQuestions": []}

    def test_ranking_after_cron(self, client, clock, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", None)
        client.post("/api/coin/explain", json={"deviceFingerprint": "a", "question": "要不要换工作"})
        client.post("/api/coin/explain", json={"deviceFingerprint": "b", "question": "要不要换工作"})
        client.post("/api/coin/explain", json={"deviceFingerprint": "a", "question": "今天适合表白吗"})
        clock.set(2024, 1, 2, 4, 0)

        run = client.post("/api/cron/hot-questions")
        response = client.get("/api/hot-questions/today")

        assert run.json()["success"] is True
        assert run.json()["count"] == 2
        assert response.json() == {"hotQuestions": ["要不要换工作", "今天适合表白吗"]}


class TestCronRoute:

    def test_open_without_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", None)
        response = client.get("/api/cron/hot-questions")
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["count"] == 0

    def test_secret_required(self, client, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")

        missing = client.post("/api/cron/hot-questions")
        wrong = client.post("/api/cron/hot-questions", headers={"Authorization": "Bearer nope"})
        right = client.post("/api/cron/hot-questions", headers={"Authorization": "Bearer s3cret"})

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert right.status_code == 200

    def test_failure_is_500(self, client, monkeypatch):
        from daily_coin.main import app

        monkeypatch.setattr(settings, "CRON_SECRET", None)
        broken = MagicMock()
        broken.calculate_hot_questions = AsyncMock(side_effect=RuntimeError("db down"))
        app.dependency_overrides[get_hot_question_service] = lambda: broken

        response = client.get("/api/cron/hot-questions")

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert "timestamp" in response.json()


class TestUnexpectedErrors:

    def test_route_crash_answered_by_access_logger(self, client):
        from daily_coin.main import app

        broken = MagicMock()
        broken.get_today = AsyncMock(side_effect=RuntimeError("db gone"))
        app.dependency_overrides[get_coin_service] = lambda: broken

        response = client.get("/api/coin/today", params=FP)

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal Server Error"
        assert "support_id" in response.json()
