"""
Tests for ProgressQueryService.
"""

from datetime import datetime, timezone

import pytest

from src.core.database.base import as_utc
from src.modules.shared.exceptions import ValidationError
from src.modules.whitelist.query import ProgressQueryService, ProgressStatus
from src.modules.whitelist.repository import ProgressRepository

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def _seed(database, scores):
    repository = ProgressRepository()
    async with database.get_transaction() as session:
        for player_id, score in scores.items():
            await repository.add_progress(session, player_id, score, NOW)


@pytest.mark.unit
@pytest.mark.database
class TestProgressQuery:
    async def test_unknown_player(self, database, settings):
        result = await ProgressQueryService(settings, database).get_progress("nobody")

        assert result.status is ProgressStatus.NO_PROGRESS
        assert result.percentage is None
        assert result.rank is None

    async def test_below_threshold_has_no_rank(self, database, settings):
        await _seed(database, {"A": 60.0, "B": 150.0})

        result = await ProgressQueryService(settings, database).get_progress("A")

        assert result.status is ProgressStatus.IN_PROGRESS
        assert result.percentage == 60
        assert result.rank is None
        assert result.total is None

    async def test_rank_among_whitelisted(self, database, settings):
        await _seed(database, {"A": 200.0, "B": 150.0, "C": 120.0, "D": 80.0})
        service = ProgressQueryService(settings, database)

        result = await service.get_progress("C")

        assert result.status is ProgressStatus.WHITELISTED
        assert result.percentage == 120
        assert (result.rank, result.total) == (3, 3)
        assert (await service.get_progress("A")).rank == 1

    async def test_exactly_at_threshold_is_whitelisted(self, database, settings):
        await _seed(database, {"A": 100.0})

        result = await ProgressQueryService(settings, database).get_progress("A")

        assert result.status is ProgressStatus.WHITELISTED
        assert (result.rank, result.total) == (1, 1)

    async def test_query_does_not_modify_record(self, database, settings):
        await _seed(database, {"A": 42.0})

        await ProgressQueryService(settings, database).get_progress("A")

        async with database.get_session() as session:
            record = await ProgressRepository().get_progress(session, "A")
        assert record.score == pytest.approx(42.0)
        assert as_utc(record.last_progressed_at) == NOW

    async def test_player_missing_from_ranking_read_is_still_ranked(
        self, database, settings, mocker
    ):
        await _seed(database, {"A": 200.0, "B": 150.0})
        repository = ProgressRepository()
        original = repository.list_at_or_above

        async def without_b(session, threshold):
            return [row for row in await original(session, threshold) if row.player_id != "B"]

        mocker.patch.object(repository, "list_at_or_above", side_effect=without_b)

        result = await ProgressQueryService(settings, database, repository).get_progress("B")

        assert (result.rank, result.total) == (2, 2)

    @pytest.mark.parametrize("player_id", ["", "   ", None])
    async def test_blank_player_id_rejected(self, database, settings, player_id):
        with pytest.raises(ValidationError):
            await ProgressQueryService(settings, database).get_progress(player_id)
