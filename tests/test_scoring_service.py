from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, PropertyMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from reading_room.core.default_scoring_rules import DEFAULT_SCORING_RULES
from reading_room.core.exceptions import VisitorNotFoundError
from reading_room.services.scoring_service import ScoringService

from tests.conftest import make_rule_row, make_threshold_row, rules_config


def _make_visitor(**overrides):
    visitor = MagicMock()
    visitor.visitor_id = overrides.pop("visitor_id", uuid4())
    visitor.client_id = overrides.pop("client_id", 1)
    visitor.estimated_revenue = "$10M - $50M"
    visitor.estimated_employee_count = "51-200"
    visitor.industry = "Technology|Software"
    visitor.state = "CA"
    visitor.job_title = "VP Marketing"
    visitor.lead_score = 0
    visitor.current_room = "none"
    visitor.score_calculated_at = None
    visitor.score_breakdown = None
    for key, value in overrides.items():
        setattr(visitor, key, value)
    return visitor


def _activity(type_, url=None, **kwargs):
    activity = MagicMock()
    activity.type = type_
    activity.url = url
    activity.referrer = kwargs.get("referrer")
    activity.utm_source = kwargs.get("utm_source")
    activity.utm_content = kwargs.get("utm_content")
    return activity


_PROBLEM_15 = rules_config(
    "problem",
    revenue={"points": 10, "values": ["$10M - $50M"]},
    target_states={"points": 5, "values": ["CA"]},
    minimum_threshold={"required_score": 20},
)


def _service(visitor, activities=(), rules=None, thresholds=None):
    """Build a ScoringService over mocked repositories.

    *rules* maps room → global rules config (defaults when omitted).
    """
    rules = rules or {}
    visitor_repo = AsyncMock()
    visitor_repo.get_by_id = AsyncMock(return_value=visitor)
    visitor_repo.update_score = AsyncMock()
    visitor_repo.commit = AsyncMock()

    activity_repo = AsyncMock()
    activity_repo.list_for_visitor = AsyncMock(return_value=list(activities))

    rule_repo = AsyncMock()
    rule_repo.seed_if_empty = AsyncMock()
    rule_repo.get_client = AsyncMock(return_value=None)
    rule_repo.get_global = AsyncMock(
        side_effect=lambda room: make_rule_row(
            rules.get(room, DEFAULT_SCORING_RULES[room])
        )
    )

    threshold_repo = AsyncMock()
    threshold_repo.get = AsyncMock(return_value=thresholds)

    service = ScoringService(
        visitor_repo=visitor_repo,
        activity_repo=activity_repo,
        scoring_rule_repo=rule_repo,
        threshold_repo=threshold_repo,
    )
    return service, visitor_repo, activity_repo, rule_repo


class TestCalculateVisitorScore:
    """Full orchestration: resolve, score, gate, classify, persist."""

    @pytest.mark.asyncio
    async def test_gate_zeroes_every_room(self):
        """A Problem score of 15 against a required 20 gates the visitor."""
        visitor = _make_visitor()
        activities = [_activity("email_open") for _ in range(5)] + [
            _activity("page_visit", "/demo/requested")
        ]
        service, visitor_repo, _, _ = _service(
            visitor, activities, rules={"problem": _PROBLEM_15}
        )

        result = await service.calculate_visitor_score(visitor.visitor_id)

        assert result.gated is True
        assert result.per_room_scores == {"problem": 0, "solution": 0, "offer": 0}
        assert result.total_score == 0
        assert result.assigned_room == "none"
        visitor_repo.update_score.assert_awaited_once()
        assert visitor_repo.update_score.await_args.kwargs["current_room"] == "none"

    @pytest.mark.asyncio
    async def test_gate_passes_at_required_score(self):
        visitor = _make_visitor(job_title="CEO")
        problem = dict(_PROBLEM_15)
        problem["role_match"] = dict(problem["role_match"], enabled=True, points=5)
        service, _, _, _ = _service(visitor, rules={"problem": problem})

        result = await service.calculate_visitor_score(visitor.visitor_id)

        assert result.gated is False
        assert result.per_room_scores["problem"] == 20
        assert result.assigned_room == "problem"

    @pytest.mark.asyncio
    async def test_rooms_are_summed_and_classified(self):
        visitor = _make_visitor()
        activities = [
            _activity("page_visit", "/pricing"),
            _activity("page_visit", "/demo/requested"),
        ]
        problem = rules_config("problem", revenue={"points": 10, "values": ["$10M - $50M"]})
        service, _, _, _ = _service(visitor, activities, rules={"problem": problem})

        result = await service.calculate_visitor_score(visitor.visitor_id)

        # problem 10; solution pages 6 + key page 10; offer demo 25 + pricing 15
        assert result.per_room_scores == {"problem": 10, "solution": 16, "offer": 40}
        assert result.total_score == 66
        assert result.assigned_room == "offer"
        assert result.threshold_source == "default"
        assert result.rule_sources == {
            "problem": "global",
            "solution": "global",
            "offer": "global",
        }

    @pytest.mark.asyncio
    async def test_total_is_capped(self):
        visitor = _make_visitor()
        activities = [_activity("email_click") for _ in range(30)]
        service, _, _, _ = _service(
            visitor, activities, rules={"problem": rules_config("problem")}
        )

        result = await service.calculate_visitor_score(visitor.visitor_id)

        assert result.per_room_scores["solution"] > 100
        assert result.total_score == 100

    @pytest.mark.asyncio
    async def test_stored_thresholds_are_used(self):
        visitor = _make_visitor()
        problem = rules_config("problem", revenue={"points": 10, "values": ["$10M - $50M"]})
        service, _, _, _ = _service(
            visitor,
            rules={"problem": problem},
            thresholds=make_threshold_row(5, 8, 10),
        )

        result = await service.calculate_visitor_score(visitor.visitor_id)

        assert result.assigned_room == "offer"
        assert result.thresholds == {"problem_max": 5, "solution_max": 8, "offer_min": 10}

    @pytest.mark.asyncio
    async def test_unknown_visitor_raises(self):
        service, _, _, _ = _service(None)

        with pytest.raises(VisitorNotFoundError):
            await service.calculate_visitor_score(uuid4())

    @pytest.mark.asyncio
    async def test_client_id_override_drives_resolution(self):
        visitor = _make_visitor(client_id=1)
        service, _, _, rule_repo = _service(visitor)

        await service.calculate_visitor_score(visitor.visitor_id, client_id=42)

        client_ids = {call.args[0] for call in rule_repo.get_client.await_args_list}
        assert client_ids == {42}

    @pytest.mark.asyncio
    async def test_recalculation_is_idempotent(self):
        visitor = _make_visitor()
        activities = [_activity("page_visit", "/pricing")]
        service, _, _, _ = _service(visitor, activities)

        first = await service.calculate_visitor_score(visitor.visitor_id, force=True)
        second = await service.calculate_visitor_score(visitor.visitor_id, force=True)

        assert first.model_dump(exclude={"calculated_at"}) == second.model_dump(
            exclude={"calculated_at"}
        )

    @pytest.mark.asyncio
    async def test_rules_seeded_once(self):
        visitor = _make_visitor()
        service, _, _, rule_repo = _service(visitor)

        await service.calculate_visitor_score(visitor.visitor_id, force=True)
        await service.calculate_visitor_score(visitor.visitor_id, force=True)

        rule_repo.seed_if_empty.assert_awaited_once()


class TestFreshness:
    """Cached results younger than 24 hours are reused."""

    def _cached_visitor(self, age_hours):
        return _make_visitor(
            lead_score=45,
            current_room="solution",
            score_calculated_at=datetime.now(timezone.utc) - timedelta(hours=age_hours),
            score_breakdown={
                "per_room_scores": {"problem": 25, "solution": 20, "offer": 0},
                "gated": False,
                "breakdown": {"problem": {"revenue": 10}},
                "rule_sources": {"problem": "global"},
                "thresholds": {"problem_max": 40, "solution_max": 60, "offer_min": 61},
                "threshold_source": "default",
            },
        )

    @pytest.mark.asyncio
    async def test_fresh_result_is_reused(self):
        visitor = self._cached_visitor(age_hours=2)
        service, visitor_repo, activity_repo, _ = _service(visitor)

        result = await service.calculate_visitor_score(visitor.visitor_id)

        assert result.cached is True
        assert result.total_score == 45
        assert result.assigned_room == "solution"
        activity_repo.list_for_visitor.assert_not_called()
        visitor_repo.update_score.assert_not_called()

    @pytest.mark.asyncio
    async def test_force_bypasses_cache(self):
        visitor = self._cached_visitor(age_hours=2)
        service, visitor_repo, activity_repo, _ = _service(visitor)

        result = await service.calculate_visitor_score(visitor.visitor_id, force=True)

        assert result.cached is False
        activity_repo.list_for_visitor.assert_awaited_once()
        visitor_repo.update_score.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stale_result_is_recalculated(self):
        visitor = self._cached_visitor(age_hours=25)
        service, _, activity_repo, _ = _service(visitor)

        result = await service.calculate_visitor_score(visitor.visitor_id)

        assert result.cached is False
        activity_repo.list_for_visitor.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_malformed_cache_is_recalculated(self):
        visitor = self._cached_visitor(age_hours=1)
        visitor.score_breakdown = {"unexpected": True}
        service, _, activity_repo, _ = _service(visitor)

        result = await service.calculate_visitor_score(visitor.visitor_id)

        assert result.cached is False
        activity_repo.list_for_visitor.assert_awaited_once()


class TestSessionRecovery:
    """Store failures roll the session back before it is used again."""

    _REVENUE_10 = rules_config(
        "problem", revenue={"points": 10, "values": ["$10M - $50M"]}
    )

    @pytest.mark.asyncio
    async def test_seed_failure_rolls_back_and_scoring_continues(self):
        visitor = _make_visitor()
        service, visitor_repo, _, rule_repo = _service(
            visitor, rules={"problem": self._REVENUE_10}
        )
        rule_repo.commit.side_effect = IntegrityError(
            "INSERT INTO global_scoring_rules", {}, Exception("duplicate key")
        )

        result = await service.calculate_visitor_score(visitor.visitor_id, force=True)

        rule_repo.rollback.assert_awaited_once()
        assert result.per_room_scores["problem"] == 10
        visitor_repo.update_score.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_seed_is_retried_on_next_call(self):
        visitor = _make_visitor()
        service, _, _, rule_repo = _service(visitor)
        rule_repo.seed_if_empty.side_effect = [
            OperationalError("SELECT count(*)", {}, Exception("gone")),
            None,
        ]

        await service.calculate_visitor_score(visitor.visitor_id, force=True)
        await service.calculate_visitor_score(visitor.visitor_id, force=True)

        assert rule_repo.seed_if_empty.await_count == 2
        rule_repo.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_activity_retry_rolls_back_and_keeps_visitor_profile(self):
        visitor = _make_visitor()
        service, _, activity_repo, _ = _service(
            visitor,
            [_activity("page_visit", "/pricing")],
            rules={"problem": self._REVENUE_10},
        )
        activity_repo.list_for_visitor.side_effect = [
            OperationalError("SELECT visitor_activities", {}, Exception("reset")),
            [_activity("page_visit", "/pricing")],
        ]

        async def expire_visitor():
            # Rolled-back rows can no longer be read without a query
            type(visitor).estimated_revenue = PropertyMock(
                side_effect=RuntimeError("instance expired")
            )

        activity_repo.rollback.side_effect = expire_visitor

        result = await service.calculate_visitor_score(visitor.visitor_id, force=True)

        activity_repo.rollback.assert_awaited_once()
        assert activity_repo.list_for_visitor.await_count == 2
        assert result.breakdown["problem"]["revenue"] == 10

    @pytest.mark.asyncio
    async def test_rule_lookup_retry_rolls_back(self):
        visitor = _make_visitor()
        service, _, _, rule_repo = _service(visitor)
        rows = {
            room: make_rule_row(rules) for room, rules in DEFAULT_SCORING_RULES.items()
        }
        rule_repo.get_global.side_effect = [
            ConnectionError("connection reset"),
            rows["problem"],
            rows["solution"],
            rows["offer"],
        ]

        result = await service.calculate_visitor_score(visitor.visitor_id, force=True)

        rule_repo.rollback.assert_awaited_once()
        assert result.rule_sources == {
            "problem": "global",
            "solution": "global",
            "offer": "global",
        }
