import logging
from typing import Optional

from app.schemas.quest_schema import QuestList, QuestOut, QuestSummary, UserHistory
from app.schemas.user_schema import UserList, UserResponse, UserSummary
from app.services.errors import (
    AlreadyCompletedError,
    QuestExistsError,
    QuestNotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from app.services.ledger import Ledger

logger = logging.getLogger(__name__)


def create_user(ledger: Ledger, name: str, balance: Optional[int] = 0) -> dict:
    if ledger.user_name_exists(name):
        raise UserExistsError()

    with ledger.transaction(conflict=UserExistsError):
        ledger.add_user(name, balance or 0)

    logger.info("Created user %r with balance %s", name, balance or 0)
    return {"message": "User created successfully."}


def create_quest(ledger: Ledger, name: str, cost: int) -> dict:
    if ledger.quest_name_exists(name):
        raise QuestExistsError()

    with ledger.transaction(conflict=QuestExistsError):
        ledger.add_quest(name, cost)

    logger.info("Created quest %r with cost %s", name, cost)
    return {"message": "Quest created successfully."}


def list_users(ledger: Ledger) -> UserList:
    return UserList(users=[UserResponse.model_validate(u) for u in ledger.list_users()])


def list_quests(ledger: Ledger) -> QuestList:
    return QuestList(quests=[QuestOut.model_validate(q) for q in ledger.list_quests()])


def get_user_history(ledger: Ledger, user_id: int) -> UserHistory:
    user = ledger.get_user(user_id)
    if user is None:
        raise UserNotFoundError()

    quests = ledger.completed_quests(user_id)
    return UserHistory(
        user=UserSummary.model_validate(user),
        quests=[QuestSummary.model_validate(q) for q in quests],
    )


def complete_quest(ledger: Ledger, user_id: int, quest_id: int) -> dict:
    """Grant a quest's cost to a user and record the completion, at most once.

    The two reads up front only fail fast with a precise error. Atomicity
    comes from the transaction, and a concurrent duplicate that slips past
    the first check is stopped by the unique (user_id, quest_id) constraint,
    which rolls back the balance increment with it.
    """
    # 1. Prevent duplicate completion
    if ledger.completion_exists(user_id, quest_id):
        raise AlreadyCompletedError()

    # 2. Reward amount
    cost = ledger.quest_cost(quest_id)
    if cost is None:
        raise QuestNotFoundError()

    # 3. Balance + completion row commit together or not at all
    with ledger.transaction(conflict=AlreadyCompletedError):
        if ledger.add_to_balance(user_id, cost) == 0:
            logger.warning("Completion for unknown user %s on quest %s rolled back", user_id, quest_id)
            raise UserNotFoundError()
        ledger.record_completion(user_id, quest_id)

    logger.info("User %s completed quest %s (+%s)", user_id, quest_id, cost)
    return {"message": "Quest completed successfully."}
