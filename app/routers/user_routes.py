from fastapi import APIRouter, Depends

from app.schemas.quest_schema import Message, UserHistory
from app.schemas.user_schema import UserCreate, UserList
from app.services import quest_service
from app.services.errors import UserNotFoundError
from app.services.ledger import Ledger, get_ledger

router = APIRouter(tags=["User"])


@router.post("/create_user", response_model=Message)
@router.post("/users", response_model=Message)
def create_user(user_data: UserCreate, ledger: Ledger = Depends(get_ledger)):
    return quest_service.create_user(ledger, user_data.name, user_data.balance)


@router.get("/users", response_model=UserList)
def get_all_users(ledger: Ledger = Depends(get_ledger)):
    return quest_service.list_users(ledger)


@router.get("/history/{user_id}", response_model=UserHistory)
def get_user_history(user_id: str, ledger: Ledger = Depends(get_ledger)):
    # A non-numeric id can't match any user
    try:
        uid = int(user_id)
    except ValueError:
        raise UserNotFoundError()
    return quest_service.get_user_history(ledger, uid)
