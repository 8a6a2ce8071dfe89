# routers/quest_routes.py

from fastapi import APIRouter, Depends

from app.schemas.quest_schema import CompletionRequest, Message, QuestCreate, QuestList
from app.services import quest_service
from app.services.ledger import Ledger, get_ledger

router = APIRouter(tags=["Quests"])


@router.post("/create_quest", response_model=Message)
@router.post("/quests", response_model=Message)
def create_quest(quest: QuestCreate, ledger: Ledger = Depends(get_ledger)):
    return quest_service.create_quest(ledger, quest.name, quest.cost)


@router.get("/quests", response_model=QuestList)
def get_all_quests(ledger: Ledger = Depends(get_ledger)):
    return quest_service.list_quests(ledger)


@router.post("/complete", response_model=Message)
def complete_quest(payload: CompletionRequest, ledger: Ledger = Depends(get_ledger)):
    # Reward + completion record are written in one transaction
    return quest_service.complete_quest(ledger, payload.user_id, payload.quest_id)
