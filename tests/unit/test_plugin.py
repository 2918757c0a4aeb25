"""
Tests for the SquadLeaderWhitelist plugin facade.

Covers mount/unmount lifecycle, tick wiring, host events and the guarantee
that nothing raised internally reaches the host.
"""

from pathlib import Path

import pytest

from src.core.database.base import utc_now
from src.core.exceptions import SchemaInitializationError
from src.modules.whitelist.plugin import SquadLeaderWhitelist
from src.modules.whitelist.query import ProgressStatus
from src.modules.whitelist.repository import ProgressRepository
from tests.factories import FakeRosterSource, filler_players, raw_squad


async def _score(database, player_id):
    async with database.get_session() as session:
        record = await ProgressRepository().get_progress(session, player_id)
    return None if record is None else record.score


@pytest.mark.unit
@pytest.mark.database
class TestLifecycle:
    async def test_mount_creates_file_and_starts_tasks(
        self, database, settings, roster_source, sink
    ):
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        assert await plugin.mount() is True
        try:
            assert plugin.is_mounted
            assert sorted(task.name for task in plugin.tasks) == ["decay", "progress", "whitelist"]
            assert all(task.is_running for task in plugin.tasks)
            assert Path(settings.output_path).read_text() == "Group=sl_whitelist:reserve\n\n\n"
        finally:
            await plugin.unmount()

        assert plugin.tasks == []
        assert plugin.is_mounted is False

    async def test_schema_failure_disables_plugin(self, database, settings, roster_source, sink, mocker):
        mocker.patch(
            "src.modules.whitelist.plugin.ensure_schema",
            side_effect=SchemaInitializationError(RuntimeError("permission denied")),
        )
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        assert await plugin.mount() is False
        assert plugin.tasks == []
        assert plugin.is_mounted is False

    async def test_mount_without_store_returns_false(self, settings, roster_source, sink):
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)
        assert await plugin.mount() is False

    async def test_unmount_without_mount_is_safe(self, settings, roster_source, sink):
        await SquadLeaderWhitelist(roster_source, sink, settings).unmount()


@pytest.mark.unit
@pytest.mark.database
class TestTicks:
    async def test_progress_tick_credits_eligible_leaders(
        self, database, settings, roster_source, sink
    ):
        roster_source.players = raw_squad("L1", 1, 4) + raw_squad("L2", 2, 3)
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        result = await plugin.run_progress_tick()

        assert result.credited == 1
        assert await _score(database, "L1") == pytest.approx(settings.progress_delta)
        assert await _score(database, "L2") is None

    async def test_roster_failure_skips_tick(self, database, settings, roster_source, sink):
        roster_source.error = ConnectionError("RCON down")
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        result = await plugin.run_progress_tick()

        assert result.credited == 0

    async def test_decay_tick_without_roster_is_skipped(self, database, settings, sink):
        plugin = SquadLeaderWhitelist(FakeRosterSource(None), sink, settings)

        result = await plugin.run_decay_tick()

        assert result.applied is False
        assert result.skipped_reason == "no_roster"

    async def test_decay_tick_uses_live_player_count(
        self, database, settings, roster_source, sink
    ):
        roster_source.players = filler_players(49) + [{"name": "malformed"}]
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        result = await plugin.run_decay_tick()

        # 50 raw entries reach the gate even though one was dropped
        assert result.applied is True

    async def test_new_game_regenerates_file(self, database, settings, roster_source, sink):
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)
        repository = ProgressRepository()
        async with database.get_transaction() as session:
            await repository.add_progress(session, "VIP", 130.0, utc_now())

        await plugin.on_new_game()

        assert "Admin=VIP:sl_whitelist" in Path(settings.output_path).read_text()

    async def test_new_game_without_store_does_not_raise(self, settings, roster_source, sink):
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        await plugin.on_new_game()

        assert not Path(settings.output_path).exists()

    async def test_new_game_contains_unexpected_errors(
        self, database, settings, roster_source, sink, mocker
    ):
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)
        mocker.patch.object(
            plugin.materializer, "materialize", side_effect=RuntimeError("event loop closed")
        )

        await plugin.on_new_game()

        plugin.materializer.materialize.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.database
class TestChatCommand:
    async def test_reply_is_sent_privately(self, database, settings, roster_source, sink):
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        result = await plugin.on_chat_command("newbie", "Newbie")

        assert result is not None
        assert result.status is ProgressStatus.NO_PROGRESS
        assert len(sink.messages_for("newbie")) == 1
        assert "No whitelist progress found" in sink.messages_for("newbie")[0]

    async def test_query_failure_sends_nothing(
        self, database, settings, roster_source, sink, mocker
    ):
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)
        mocker.patch.object(plugin.queries, "get_progress", side_effect=RuntimeError("db gone"))

        assert await plugin.on_chat_command("p1") is None
        assert sink.messages == []

    async def test_blank_player_id_sends_nothing(self, database, settings, roster_source, sink):
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        assert await plugin.on_chat_command("  ") is None
        assert sink.messages == []

    async def test_delivery_failure_still_returns_result(
        self, database, settings, roster_source, sink
    ):
        sink.fail_for.add("p1")
        plugin = SquadLeaderWhitelist(roster_source, sink, settings)

        result = await plugin.on_chat_command("p1")

        assert result is not None
        assert result.status is ProgressStatus.NO_PROGRESS

    def test_chat_command_name(self):
        assert SquadLeaderWhitelist.CHAT_COMMAND == "slwl"
