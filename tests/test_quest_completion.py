from __future__ import annotations

import threading
import unittest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from app.models.user_completed_quest import UserQuest
from app.models.user import User
from app.services import quest_service
from app.services.errors import (
    AlreadyCompletedError,
    QuestLedgerError,
    QuestNotFoundError,
    StorageError,
    UserNotFoundError,
)
from app.services.ledger import SqlLedger

from ledger_fakes import InMemoryLedger, SqliteTestCase


class CompletionWorkflowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ledger = InMemoryLedger()
        quest_service.create_user(self.ledger, "Alice", 5)
        quest_service.create_quest(self.ledger, "Slay Dragon", 100)
        quest_service.create_quest(self.ledger, "Find Grail", 40)

    def test_first_completion_grants_cost(self) -> None:
        result = quest_service.complete_quest(self.ledger, 1, 1)
        self.assertEqual(result, {"message": "Quest completed successfully."})
        self.assertEqual(self.ledger.users[1].balance, 105)
        self.assertEqual(self.ledger.completions, [(1, 1)])

    def test_second_completion_is_rejected_and_balance_kept(self) -> None:
        quest_service.complete_quest(self.ledger, 1, 1)
        with self.assertRaises(AlreadyCompletedError) as ctx:
            quest_service.complete_quest(self.ledger, 1, 1)
        self.assertEqual(ctx.exception.message, "Quest already completed by user.")
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(self.ledger.users[1].balance, 105)
        self.assertEqual(len(self.ledger.completions), 1)

    def test_unknown_quest_leaves_balance_unchanged(self) -> None:
        with self.assertRaises(QuestNotFoundError):
            quest_service.complete_quest(self.ledger, 1, 99)
        self.assertEqual(self.ledger.users[1].balance, 5)
        self.assertEqual(self.ledger.completions, [])

    def test_unknown_user_fails_without_recording_completion(self) -> None:
        # A zero-row balance update is treated as a missing user, not a silent success.
        with self.assertRaises(UserNotFoundError):
            quest_service.complete_quest(self.ledger, 42, 1)
        self.assertEqual(self.ledger.completions, [])

    def test_failure_after_balance_update_rolls_back(self) -> None:
        self.ledger.fail_record_completion = True
        with self.assertRaises(StorageError):
            quest_service.complete_quest(self.ledger, 1, 1)
        self.assertEqual(self.ledger.users[1].balance, 5)
        self.assertEqual(self.ledger.completions, [])

    def test_history_lists_exactly_completed_quests(self) -> None:
        quest_service.complete_quest(self.ledger, 1, 1)
        quest_service.complete_quest(self.ledger, 1, 2)
        history = quest_service.get_user_history(self.ledger, 1)
        self.assertEqual(history.user.name, "Alice")
        self.assertEqual(history.user.balance, 145)
        self.assertEqual({q.name for q in history.quests}, {"Slay Dragon", "Find Grail"})

    def test_history_for_unknown_user(self) -> None:
        with self.assertRaises(UserNotFoundError):
            quest_service.get_user_history(self.ledger, 7)


class SqlCompletionTests(SqliteTestCase):
    def setUp(self) -> None:
        super().setUp()
        with self.ledger() as ledger:
            quest_service.create_user(ledger, "Alice", 0)
            quest_service.create_quest(ledger, "Slay Dragon", 100)

    def _balance(self, user_id: int = 1) -> int:
        with self.Session() as db:
            return db.get(User, user_id).balance

    def _completion_count(self) -> int:
        with self.Session() as db:
            return db.query(UserQuest).count()

    def test_completion_commits_balance_and_row_together(self) -> None:
        with self.ledger() as ledger:
            quest_service.complete_quest(ledger, 1, 1)
        self.assertEqual(self._balance(), 100)
        self.assertEqual(self._completion_count(), 1)

    def test_unique_constraint_rejects_duplicate_past_precheck(self) -> None:
        with self.ledger() as ledger:
            quest_service.complete_quest(ledger, 1, 1)

        # Simulate a racing request whose existence check ran before the first commit.
        with patch.object(SqlLedger, "completion_exists", return_value=False):
            with self.ledger() as ledger:
                with self.assertRaises(AlreadyCompletedError):
                    quest_service.complete_quest(ledger, 1, 1)

        self.assertEqual(self._balance(), 100)
        self.assertEqual(self._completion_count(), 1)

    def test_storage_failure_mid_transaction_rolls_back_balance(self) -> None:
        boom = OperationalError("INSERT INTO user_quests", {}, Exception("disk I/O error"))
        with patch("sqlalchemy.orm.Session.flush", side_effect=boom):
            with self.ledger() as ledger:
                with self.assertRaises(StorageError) as ctx:
                    quest_service.complete_quest(ledger, 1, 1)
        self.assertEqual(ctx.exception.message, "Logging quest completion failed.")
        self.assertEqual(self._balance(), 0)
        self.assertEqual(self._completion_count(), 0)

    def test_unknown_user_is_rolled_back(self) -> None:
        with self.ledger() as ledger:
            with self.assertRaises(UserNotFoundError):
                quest_service.complete_quest(ledger, 99, 1)
        self.assertEqual(self._completion_count(), 0)

    def test_simultaneous_completions_grant_reward_once(self) -> None:
        barrier = threading.Barrier(2)
        outcomes: list[object] = []
        lock = threading.Lock()

        def worker() -> None:
            with self.ledger() as ledger:
                barrier.wait()
                try:
                    outcome: object = quest_service.complete_quest(ledger, 1, 1)
                except QuestLedgerError as exc:
                    outcome = exc
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        successes = [o for o in outcomes if isinstance(o, dict)]
        failures = [o for o in outcomes if isinstance(o, QuestLedgerError)]
        self.assertEqual(len(successes), 1)
        self.assertEqual(len(failures), 1)
        self.assertEqual(self._balance(), 100)
        self.assertEqual(self._completion_count(), 1)


if __name__ == "__main__":
    unittest.main()
