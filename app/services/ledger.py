"""Persistence seam for the quest workflows.

Handlers never touch the ORM directly; they receive a ``Ledger`` through
``Depends(get_ledger)``. ``SqlLedger`` is the SQLAlchemy implementation and
tests swap in an in-memory one through ``app.dependency_overrides``.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Depends
from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.quests import Quest
from app.models.user import User
from app.models.user_completed_quest import UserQuest
from app.services.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


class Ledger(ABC):
    """Storage operations used by ``app.services.quest_service``.

    Writes must happen inside ``transaction()``; everything written in the
    block is committed together or rolled back together.
    """

    @abstractmethod
    def transaction(self, conflict: type[ConflictError] = ConflictError):
        """Context manager: commit on clean exit, roll back on any error.

        A uniqueness violation surfaces as ``conflict()``.
        """

    @abstractmethod
    def user_name_exists(self, name: str) -> bool: ...

    @abstractmethod
    def quest_name_exists(self, name: str) -> bool: ...

    @abstractmethod
    def add_user(self, name: str, balance: int) -> None: ...

    @abstractmethod
    def add_quest(self, name: str, cost: int) -> None: ...

    @abstractmethod
    def list_users(self) -> list: ...

    @abstractmethod
    def list_quests(self) -> list: ...

    @abstractmethod
    def get_user(self, user_id: int): ...

    @abstractmethod
    def completed_quests(self, user_id: int) -> list: ...

    @abstractmethod
    def completion_exists(self, user_id: int, quest_id: int) -> bool: ...

    @abstractmethod
    def quest_cost(self, quest_id: int) -> Optional[int]: ...

    @abstractmethod
    def add_to_balance(self, user_id: int, amount: int) -> int:
        """Increment a balance; returns the number of rows matched."""

    @abstractmethod
    def record_completion(self, user_id: int, quest_id: int) -> None: ...


@contextmanager
def _storage_errors(message: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("%s (%s)", message, exc)
        raise StorageError(message) from exc


class SqlLedger(Ledger):
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self, conflict: type[ConflictError] = ConflictError):
        try:
            yield self
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.info("Rolled back on constraint violation: %s", exc.orig)
            raise conflict() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Committing transaction failed: %s", exc)
            raise StorageError("Committing transaction failed.") from exc
        except Exception:
            self.db.rollback()
            raise

    # ---------- Reads ----------

    def user_name_exists(self, name: str) -> bool:
        with _storage_errors("Error checking user existence."):
            return bool(self.db.scalar(select(exists().where(User.name == name))))

    def quest_name_exists(self, name: str) -> bool:
        with _storage_errors("Error checking quest existence."):
            return bool(self.db.scalar(select(exists().where(Quest.name == name))))

    def list_users(self) -> list[User]:
        with _storage_errors("Error retrieving users."):
            return self.db.query(User).order_by(User.id).all()

    def list_quests(self) -> list[Quest]:
        with _storage_errors("Error retrieving quests."):
            return self.db.query(Quest).order_by(Quest.id).all()

    def get_user(self, user_id: int) -> Optional[User]:
        with _storage_errors("Error retrieving user."):
            return self.db.query(User).filter(User.id == user_id).first()

    def completed_quests(self, user_id: int) -> list[Quest]:
        with _storage_errors("Error retrieving user quests."):
            return (
                self.db.query(Quest)
                .join(UserQuest, Quest.id == UserQuest.quest_id)
                .filter(UserQuest.user_id == user_id)
                .order_by(UserQuest.id)
                .all()
            )

    def completion_exists(self, user_id: int, quest_id: int) -> bool:
        with _storage_errors("Error checking quest completion."):
            return bool(self.db.scalar(
                select(exists().where(UserQuest.user_id == user_id, UserQuest.quest_id == quest_id))
            ))

    def quest_cost(self, quest_id: int) -> Optional[int]:
        with _storage_errors("Error retrieving quest."):
            return self.db.scalar(select(Quest.cost).where(Quest.id == quest_id))

    # ---------- Writes (call inside transaction()) ----------

    def _flush(self, message: str) -> None:
        # IntegrityError is left for transaction() to map onto a conflict
        try:
            self.db.flush()
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.error("%s (%s)", message, exc)
            raise StorageError(message) from exc

    def add_user(self, name: str, balance: int) -> None:
        self.db.add(User(name=name, balance=balance))
        self._flush("Creating user failed.")

    def add_quest(self, name: str, cost: int) -> None:
        self.db.add(Quest(name=name, cost=cost))
        self._flush("Creating quest failed.")

    def add_to_balance(self, user_id: int, amount: int) -> int:
        with _storage_errors("Updating user balance failed."):
            result = self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(balance=User.balance + amount)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount

    def record_completion(self, user_id: int, quest_id: int) -> None:
        self.db.add(UserQuest(user_id=user_id, quest_id=quest_id))
        self._flush("Logging quest completion failed.")


def get_ledger(db: Session = Depends(get_db)) -> Ledger:
    return SqlLedger(db)
