from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from reading_room.api.deps import (
    get_outreach_email_service,
    get_scoring_config_service,
    get_scoring_service,
    get_session_factory,
    get_template_resolver,
)
from reading_room.core.default_scoring_rules import DEFAULT_SCORING_RULES
from reading_room.core.exceptions import (
    GenerationRateLimitError,
    ProspectNotFoundError,
    StoreUnavailableError,
    VisitorNotFoundError,
)
from reading_room.main import app
from reading_room.schemas.score import ScoreResult
from reading_room.schemas.templates import TemplateStats
from reading_room.services.scoring_config_service import ScoringConfigService

from tests.conftest import make_rule_row, make_threshold_row


def _config_service(global_row=None, client_row=None, thresholds=None):
    rule_repo = AsyncMock()
    rule_repo.get_global = AsyncMock(return_value=global_row)
    rule_repo.get_client = AsyncMock(return_value=client_row)
    rule_repo.upsert_global = AsyncMock()
    rule_repo.upsert_client = AsyncMock()
    rule_repo.delete_client = AsyncMock(return_value=2)
    rule_repo.commit = AsyncMock()

    threshold_repo = AsyncMock()
    threshold_repo.get = AsyncMock(return_value=thresholds)
    threshold_repo.upsert = AsyncMock()
    threshold_repo.commit = AsyncMock()

    service = ScoringConfigService(rule_repo, threshold_repo)
    app.dependency_overrides[get_scoring_config_service] = lambda: service
    return rule_repo, threshold_repo


class TestCORSMiddleware:
    """Verify that CORS headers are present on responses."""

    @pytest.mark.asyncio
    async def test_cors_headers_on_preflight(self, async_client):
        response = await async_client.options(
            "/api/v1/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert "access-control-allow-origin" in response.headers

    @pytest.mark.asyncio
    async def test_cors_returns_configured_origin(self, async_client):
        response = await async_client.get(
            "/api/v1/health", headers={"Origin": "http://localhost:3000"}
        )
        assert response.status_code == 200
        assert (
            response.headers.get("access-control-allow-origin")
            == "http://localhost:3000"
        )


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, async_client):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestScoringRulesEndpoints:
    """Rule set reads and validated writes."""

    @pytest.mark.asyncio
    async def test_save_global_rules_stores_canonical_form(self, async_client):
        rule_repo, _ = _config_service()
        body = dict(DEFAULT_SCORING_RULES["problem"])
        body["multiple_visits"] = {"enabled": True, "points": 5, "minimum_visits": 3}

        response = await async_client.put("/api/v1/scoring-rules/global/problem", json=body)

        assert response.status_code == 200
        stored = rule_repo.upsert_global.await_args.args[1]
        assert stored["multiple_visits"]["minimum_count"] == 3
        assert "minimum_visits" not in stored["multiple_visits"]
        assert response.json()["source"] == "global"

    @pytest.mark.asyncio
    async def test_invalid_rules_return_every_reason(self, async_client):
        rule_repo, _ = _config_service()
        body = dict(DEFAULT_SCORING_RULES["offer"])
        del body["demo_request"]
        body["pricing_page"] = dict(body["pricing_page"], points=-5)

        response = await async_client.put("/api/v1/scoring-rules/global/offer", json=body)

        assert response.status_code == 422
        data = response.json()
        assert data["type"] == "invalid_rule_set"
        assert "Missing required rule: demo_request" in data["reasons"]
        assert any(r.startswith("pricing_page.points") for r in data["reasons"])
        rule_repo.upsert_global.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_room_returns_400(self, async_client):
        _config_service()

        response = await async_client.put(
            "/api/v1/scoring-rules/global/attic", json={"anything": {}}
        )

        assert response.status_code == 400
        assert response.json()["type"] == "invalid_room_type"

    @pytest.mark.asyncio
    async def test_missing_global_rules_return_404(self, async_client):
        _config_service()

        response = await async_client.get("/api/v1/scoring-rules/global/solution")

        assert response.status_code == 404
        assert response.json()["type"] == "scoring_rules_not_found"

    @pytest.mark.asyncio
    async def test_client_rules_report_source(self, async_client):
        rule_repo, _ = _config_service(
            client_row=make_rule_row(DEFAULT_SCORING_RULES["offer"])
        )
        rule_repo.get_global = AsyncMock(
            side_effect=lambda room: make_rule_row(DEFAULT_SCORING_RULES[room])
        )

        response = await async_client.get("/api/v1/scoring-rules/clients/4")

        assert response.status_code == 200
        rooms = response.json()["rooms"]
        # the offer override fails validation for the other rooms
        assert rooms["offer"]["source"] == "client"
        assert rooms["problem"]["source"] == "global"

    @pytest.mark.asyncio
    async def test_reset_client_rules(self, async_client):
        rule_repo, _ = _config_service()

        response = await async_client.delete("/api/v1/scoring-rules/clients/4")

        assert response.json() == {"deleted": 2}
        rule_repo.delete_client.assert_awaited_once_with(4, None)


class TestRoomThresholdEndpoints:
    @pytest.mark.asyncio
    async def test_default_thresholds(self, async_client):
        _config_service()

        response = await async_client.get("/api/v1/room-thresholds/global")

        assert response.json() == {
            "problem_max": 40,
            "solution_max": 60,
            "offer_min": 61,
            "source": "default",
        }

    @pytest.mark.asyncio
    async def test_client_thresholds(self, async_client):
        _config_service(thresholds=make_threshold_row(30, 50, 70))

        response = await async_client.get("/api/v1/room-thresholds/clients/8")

        assert response.json()["offer_min"] == 70

    @pytest.mark.asyncio
    async def test_out_of_order_thresholds_rejected(self, async_client):
        _, threshold_repo = _config_service()

        response = await async_client.put(
            "/api/v1/room-thresholds/global",
            json={"problem_max": 60, "solution_max": 40, "offer_min": 61},
        )

        assert response.status_code == 422
        threshold_repo.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_client_thresholds(self, async_client):
        _, threshold_repo = _config_service()

        response = await async_client.put(
            "/api/v1/room-thresholds/clients/8",
            json={"problem_max": 30, "solution_max": 50, "offer_min": 70},
        )

        assert response.status_code == 200
        assert response.json()["source"] == "client"
        threshold_repo.upsert.assert_awaited_once()


class TestScoreEndpoints:
    @pytest.mark.asyncio
    async def test_score_visitor(self, async_client):
        visitor_id = uuid4()
        service = MagicMock()
        service.calculate_visitor_score = AsyncMock(
            return_value=ScoreResult(
                visitor_id=visitor_id,
                per_room_scores={"problem": 25, "solution": 16, "offer": 0},
                total_score=41,
                assigned_room="solution",
                gated=False,
                calculated_at=datetime.now(timezone.utc),
            )
        )
        app.dependency_overrides[get_scoring_service] = lambda: service

        response = await async_client.post(
            f"/api/v1/scores/visitors/{visitor_id}", params={"force": "true"}
        )

        assert response.status_code == 200
        assert response.json()["assigned_room"] == "solution"
        service.calculate_visitor_score.assert_awaited_once_with(visitor_id, force=True)

    @pytest.mark.asyncio
    async def test_unknown_visitor_returns_404(self, async_client):
        service = MagicMock()
        service.calculate_visitor_score = AsyncMock(side_effect=VisitorNotFoundError())
        app.dependency_overrides[get_scoring_service] = lambda: service

        response = await async_client.post(f"/api/v1/scores/visitors/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["type"] == "visitor_not_found"

    @pytest.mark.asyncio
    async def test_store_outage_returns_503(self, async_client):
        service = MagicMock()
        service.calculate_visitor_score = AsyncMock(side_effect=StoreUnavailableError())
        app.dependency_overrides[get_scoring_service] = lambda: service

        response = await async_client.post(f"/api/v1/scores/visitors/{uuid4()}")

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_batch(self, async_client):
        app.dependency_overrides[get_session_factory] = lambda: MagicMock()
        ids = [str(uuid4()), str(uuid4())]

        with patch(
            "reading_room.api.v1.endpoints.scores.recalculate_scores",
            new_callable=AsyncMock,
            return_value={"processed": 2, "failed": 0, "total": 2},
        ) as recalculate:
            response = await async_client.post(
                "/api/v1/scores/batch",
                json={"visitor_ids": ids, "client_id": 3, "batch_size": 10},
            )

        assert response.status_code == 200
        assert response.json() == {"processed": 2, "failed": 0, "total": 2}
        assert recalculate.await_args.kwargs["client_id"] == 3
        assert recalculate.await_args.kwargs["batch_size"] == 10

    @pytest.mark.asyncio
    async def test_empty_batch_is_rejected(self, async_client):
        response = await async_client.post("/api/v1/scores/batch", json={"visitor_ids": []})

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"


class TestTemplateEndpoints:
    @pytest.mark.asyncio
    async def test_templates_with_stats(self, async_client):
        resolver = MagicMock()
        resolver.get_available_templates = AsyncMock(return_value=[])
        resolver.get_template_stats = AsyncMock(
            return_value=TemplateStats(
                campaign_count=0,
                global_count=0,
                total_available=0,
                using_campaign=False,
                using_global=False,
            )
        )
        app.dependency_overrides[get_template_resolver] = lambda: resolver

        response = await async_client.get("/api/v1/templates/campaigns/3/offer")

        assert response.status_code == 200
        data = response.json()
        assert data["templates"] == []
        assert data["stats"]["total_available"] == 0


class TestProspectEndpoints:
    @pytest.mark.asyncio
    async def test_generation_rate_limit_returns_429(self, async_client):
        service = MagicMock()
        service.generate_email = AsyncMock(side_effect=GenerationRateLimitError())
        app.dependency_overrides[get_outreach_email_service] = lambda: service

        response = await async_client.post(f"/api/v1/prospects/{uuid4()}/generate-email")

        assert response.status_code == 429
        assert response.json()["type"] == "generation_rate_limited"

    @pytest.mark.asyncio
    async def test_unknown_prospect_returns_404(self, async_client):
        service = MagicMock()
        service.build_payload = AsyncMock(side_effect=ProspectNotFoundError())
        app.dependency_overrides[get_outreach_email_service] = lambda: service

        response = await async_client.get(
            f"/api/v1/prospects/{uuid4()}/generation-payload", params={"room": "offer"}
        )

        assert response.status_code == 404
