"""Tests for the quest lifecycle reducers.

Test Categories:
- add_quest (amounts fixed at creation, duplicates)
- complete_quest / fail_quest (economy, log entries, rejections)
- fail_overdue_quests
- undo_quest (exact reversal, undo window, deleted quests)
- delete_quest and accessors
- Purity: the input document is never mutated
"""

from __future__ import annotations

import copy
from typing import Any

from tests.conftest import NOW, set_player
from thesystem import const
from thesystem.reducers import (
    active_quests,
    add_quest,
    complete_quest,
    completed_quests,
    delete_quest,
    fail_overdue_quests,
    fail_quest,
    failed_quests,
    undo_quest,
)

LATER = "2026-01-15T13:00:00+00:00"


def _player(state: dict[str, Any]) -> dict[str, Any]:
    return state[const.DATA_PLAYER]


def _is_active(state: dict[str, Any], quest_id: str) -> bool:
    return any(
        q[const.DATA_QUEST_ID] == quest_id
        and not q[const.DATA_QUEST_COMPLETED]
        and not q[const.DATA_QUEST_FAILED]
        for q in state[const.DATA_QUESTS]
    )


# =============================================================================
# Test: add_quest
# =============================================================================


class TestAddQuest:
    """Tests for quest creation."""

    def test_amounts_from_rank(self, base_state: dict[str, Any]) -> None:
        """C rank stores 38/38/19 on the quest."""
        result = add_quest(base_state, {"name": "Tidy desk", "rank": "c"}, now=NOW)

        assert result.ok
        quest = result.state[const.DATA_QUESTS][0]
        assert quest[const.DATA_QUEST_RANK] == "C"
        assert quest[const.DATA_QUEST_REWARD] == 38
        assert quest[const.DATA_QUEST_GOLD_REWARD] == 38
        assert quest[const.DATA_QUEST_PENALTY] == 19
        assert quest[const.DATA_QUEST_CREATED_AT] == NOW
        assert result.event_names() == [const.EVENT_QUEST_ADDED]

    def test_duplicate_id_rejected(self, state_with_quest: dict[str, Any]) -> None:
        """A second quest with the same id is refused."""
        result = add_quest(state_with_quest, {"id": "q1", "name": "Again"})

        assert not result.ok
        assert result.rejection.reason == const.REJECT_DUPLICATE_ID
        assert result.state is state_with_quest

    def test_invalid_draft_rejected(self, base_state: dict[str, Any]) -> None:
        """Builder validation errors become invalid_input rejections."""
        result = add_quest(base_state, {"name": "  "})

        assert result.rejection.reason == const.REJECT_INVALID_INPUT
        assert result.rejection.placeholders["field"] == const.DATA_QUEST_NAME


# =============================================================================
# Test: complete_quest
# =============================================================================


class TestCompleteQuest:
    """Tests for completing quests."""

    def test_awards_stored_amounts(self, state_with_quest: dict[str, Any]) -> None:
        """XP, gold and the counter increase by the stored values."""
        result = complete_quest(state_with_quest, "q1", now=LATER)

        player = _player(result.state)
        assert player[const.DATA_PLAYER_TOTAL_XP] == 50
        assert player[const.DATA_PLAYER_GOLD] == 150
        assert player[const.DATA_PLAYER_TOTAL_QUESTS_COMPLETED] == 1

        quest = result.state[const.DATA_QUESTS][0]
        assert quest[const.DATA_QUEST_COMPLETED] is True
        assert quest[const.DATA_QUEST_COMPLETED_AT] == LATER

        entry = result.state[const.DATA_QUEST_LOG][0]
        assert entry[const.DATA_QUEST_COMPLETED] is True
        assert entry[const.DATA_QUEST_LOG_XP_APPLIED] == 50
        assert entry[const.DATA_QUEST_LOG_GOLD_APPLIED] == 50
        assert result.event_names() == [const.EVENT_QUEST_COMPLETED]

    def test_does_not_mutate_input(self, state_with_quest: dict[str, Any]) -> None:
        """The input document is left untouched."""
        snapshot = copy.deepcopy(state_with_quest)
        complete_quest(state_with_quest, "q1", now=LATER)
        assert state_with_quest == snapshot

    def test_second_completion_rejected(self, state_with_quest: dict[str, Any]) -> None:
        """A completed quest cannot be completed again."""
        first = complete_quest(state_with_quest, "q1", now=LATER)
        second = complete_quest(first.state, "q1", now=LATER)

        assert second.rejection.reason == const.REJECT_QUEST_NOT_ACTIVE
        assert second.state is first.state

    def test_unknown_quest_rejected(self, base_state: dict[str, Any]) -> None:
        """Missing quests are reported as not found."""
        result = complete_quest(base_state, "missing")
        assert result.rejection.reason == const.REJECT_QUEST_NOT_FOUND
        assert result.rejection.placeholders == {"quest_id": "missing"}

    def test_rank_up_event(self, state_with_quest: dict[str, Any]) -> None:
        """Crossing a rank threshold appends rank_up after the completion."""
        set_player(state_with_quest, totalXp=480)
        result = complete_quest(state_with_quest, "q1", now=LATER)

        assert result.event_names() == [const.EVENT_QUEST_COMPLETED, const.EVENT_RANK_UP]
        _, payload = result.events[-1]
        assert payload["old_rank"] == "Silver"
        assert payload["new_rank"] == "Gold"


# =============================================================================
# Test: fail_quest / fail_overdue_quests
# =============================================================================


class TestFailQuest:
    """Tests for failing quests."""

    def test_penalty_and_health(self, state_with_quest: dict[str, Any]) -> None:
        """Failure deducts the penalty and 5 health and records both."""
        set_player(state_with_quest, totalXp=100)
        result = fail_quest(state_with_quest, "q1", now=LATER)

        player = _player(result.state)
        assert player[const.DATA_PLAYER_TOTAL_XP] == 75
        assert player[const.DATA_PLAYER_HEALTH] == 95

        entry = result.state[const.DATA_QUEST_LOG][0]
        assert entry[const.DATA_QUEST_FAILED] is True
        assert entry[const.DATA_QUEST_COMPLETED] is False
        assert entry[const.DATA_QUEST_FAIL_REASON] == const.FAIL_REASON_MANUAL
        assert entry[const.DATA_QUEST_LOG_PENALTY_APPLIED] == 25
        assert entry[const.DATA_QUEST_LOG_HEALTH_APPLIED] == 5

    def test_penalty_floored_at_zero(self, state_with_quest: dict[str, Any]) -> None:
        """XP never goes negative; only the deducted part is recorded."""
        set_player(state_with_quest, totalXp=10)
        result = fail_quest(state_with_quest, "q1", now=LATER)

        assert _player(result.state)[const.DATA_PLAYER_TOTAL_XP] == 0
        assert result.state[const.DATA_QUEST_LOG][0][const.DATA_QUEST_LOG_PENALTY_APPLIED] == 10

    def test_unknown_reason_rejected(self, state_with_quest: dict[str, Any]) -> None:
        """Only manual and overdue are valid fail reasons."""
        result = fail_quest(state_with_quest, "q1", "bored")
        assert result.rejection.reason == const.REJECT_INVALID_INPUT

    def test_fail_overdue(self, base_state: dict[str, Any]) -> None:
        """Only active quests due before today fail, with reason overdue."""
        state = add_quest(
            base_state, {"id": "old", "name": "Old", "dueDate": "2026-01-10"}, now=NOW
        ).state
        state = add_quest(
            state, {"id": "today", "name": "Today", "dueDate": "2026-01-15"}, now=NOW
        ).state
        result = fail_overdue_quests(state, today="2026-01-15", now=LATER)

        assert result.event_names() == [const.EVENT_QUEST_FAILED]
        failed = failed_quests(result.state)
        assert [e[const.DATA_QUEST_ID] for e in failed] == ["old"]
        assert failed[0][const.DATA_QUEST_FAIL_REASON] == const.FAIL_REASON_OVERDUE
        assert [q[const.DATA_QUEST_ID] for q in active_quests(result.state)] == ["today"]

    def test_fail_overdue_nothing_due(self, state_with_quest: dict[str, Any]) -> None:
        """No overdue quests leaves the document equal and emits nothing."""
        result = fail_overdue_quests(state_with_quest, today="2026-01-15")
        assert result.ok
        assert result.events == []
        assert result.state == state_with_quest


# =============================================================================
# Test: undo_quest
# =============================================================================


class TestUndoQuest:
    """Tests for undoing completions and failures."""

    def test_undo_completion_restores_everything(
        self, state_with_quest: dict[str, Any]
    ) -> None:
        """Completing then undoing returns the player to the original values."""
        completed = complete_quest(state_with_quest, "q1", now=LATER)
        entry = completed.state[const.DATA_QUEST_LOG][0]
        result = undo_quest(completed.state, entry, today="2026-01-15")

        assert result.ok
        assert result.state[const.DATA_PLAYER] == state_with_quest[const.DATA_PLAYER]
        assert result.state[const.DATA_QUEST_LOG] == []
        quest = result.state[const.DATA_QUESTS][0]
        assert quest[const.DATA_QUEST_COMPLETED] is False
        assert quest[const.DATA_QUEST_COMPLETED_AT] is None
        _, payload = result.events[0]
        assert payload["restored"] is True

    def test_undo_failure_restores_xp_and_health(
        self, state_with_quest: dict[str, Any]
    ) -> None:
        """Failing then undoing restores XP and health exactly."""
        set_player(state_with_quest, totalXp=10, health=3)
        failed = fail_quest(state_with_quest, "q1", now=LATER)
        entry = failed.state[const.DATA_QUEST_LOG][0]
        result = undo_quest(failed.state, entry, today="2026-01-15")

        player = _player(result.state)
        assert player[const.DATA_PLAYER_TOTAL_XP] == 10
        assert player[const.DATA_PLAYER_HEALTH] == 3
        assert _is_active(result.state, "q1")

    def test_undo_window_closed(self, base_state: dict[str, Any]) -> None:
        """Entries whose due date has passed cannot be undone."""
        state = add_quest(
            base_state, {"id": "d", "name": "Dated", "dueDate": "2026-01-15"}, now=NOW
        ).state
        completed = complete_quest(state, "d", now=LATER)
        entry = completed.state[const.DATA_QUEST_LOG][0]

        assert undo_quest(completed.state, entry, today="2026-01-15").ok
        late = undo_quest(completed.state, entry, today="2026-01-16")
        assert late.rejection.reason == const.REJECT_UNDO_WINDOW_CLOSED

    def test_unknown_entry_rejected(self, state_with_quest: dict[str, Any]) -> None:
        """An entry that is not in the log cannot be undone."""
        result = undo_quest(
            state_with_quest,
            {const.DATA_QUEST_ID: "q1", const.DATA_QUEST_COMPLETED_AT: LATER},
        )
        assert result.rejection.reason == const.REJECT_LOG_ENTRY_NOT_FOUND

    def test_stored_entry_wins_over_caller_copy(
        self, state_with_quest: dict[str, Any]
    ) -> None:
        """Tampered amounts in the caller's copy are ignored."""
        completed = complete_quest(state_with_quest, "q1", now=LATER)
        entry = dict(completed.state[const.DATA_QUEST_LOG][0])
        entry[const.DATA_QUEST_LOG_XP_APPLIED] = 9999
        result = undo_quest(completed.state, entry, today="2026-01-15")

        assert _player(result.state)[const.DATA_PLAYER_TOTAL_XP] == 0

    def test_undo_after_delete_reverses_economy_only(
        self, state_with_quest: dict[str, Any]
    ) -> None:
        """The quest is not recreated when it was deleted after completion."""
        completed = complete_quest(state_with_quest, "q1", now=LATER)
        entry = completed.state[const.DATA_QUEST_LOG][0]
        deleted = delete_quest(completed.state, "q1")
        result = undo_quest(deleted.state, entry, today="2026-01-15")

        assert result.ok
        assert result.state[const.DATA_QUESTS] == []
        assert _player(result.state)[const.DATA_PLAYER_GOLD] == 100
        _, payload = result.events[0]
        assert payload["restored"] is False

    def test_rank_down_on_undo(self, state_with_quest: dict[str, Any]) -> None:
        """Undoing XP below a threshold emits rank_down."""
        set_player(state_with_quest, totalXp=480)
        completed = complete_quest(state_with_quest, "q1", now=LATER)
        entry = completed.state[const.DATA_QUEST_LOG][0]
        result = undo_quest(completed.state, entry, today="2026-01-15")

        assert result.event_names() == [const.EVENT_QUEST_UNDONE, const.EVENT_RANK_DOWN]


# =============================================================================
# Test: delete_quest and accessors
# =============================================================================


class TestDeleteAndAccessors:
    """Tests for deletion and read helpers."""

    def test_delete_keeps_log_and_economy(self, state_with_quest: dict[str, Any]) -> None:
        """Deleting only removes the quest from the list."""
        completed = complete_quest(state_with_quest, "q1", now=LATER)
        result = delete_quest(completed.state, "q1")

        assert result.state[const.DATA_QUESTS] == []
        assert len(result.state[const.DATA_QUEST_LOG]) == 1
        assert _player(result.state) == _player(completed.state)

    def test_delete_unknown(self, base_state: dict[str, Any]) -> None:
        """Deleting a missing quest is rejected."""
        assert delete_quest(base_state, "nope").rejection.reason == const.REJECT_QUEST_NOT_FOUND

    def test_log_accessors_newest_first(self, base_state: dict[str, Any]) -> None:
        """completed_quests lists the most recent completion first."""
        state = add_quest(base_state, {"id": "a", "name": "A"}, now=NOW).state
        state = add_quest(state, {"id": "b", "name": "B"}, now=NOW).state
        state = complete_quest(state, "a", now="2026-01-15T09:00:00+00:00").state
        state = complete_quest(state, "b", now="2026-01-15T10:00:00+00:00").state

        assert [e[const.DATA_QUEST_ID] for e in completed_quests(state)] == ["b", "a"]
        assert failed_quests(state) == []
        assert active_quests(state) == []

