from typing import Optional

from fastapi import APIRouter, Depends, Query

from shared_ledger.authz_utils import ensure_group_owner_or_403, ensure_subscription_or_403
from shared_ledger.group_ledger import settle_group
from shared_ledger.services import load_group, remove_group_participant
from shared_ledger.utils import get_current_user

router = APIRouter()


@router.get("/groups/{group_id}/balances", summary="Net balance per participant and transfers", tags=["Groups"])
def group_balances(group_id: str, user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    ensure_group_owner_or_403(user["sub"], group_id)
    participants, expenses = load_group(group_id)
    report = settle_group([p.name for p in participants], expenses)
    return {"group_id": group_id, **report.model_dump(by_alias=True)}


@router.delete("/groups/{group_id}/participants/{participant_id}", summary="Remove a participant from a group", tags=["Groups"])
def delete_participant(group_id: str, participant_id: str,
                       reassign_to: Optional[str] = Query(None, description="Who takes over expenses the participant paid"),
                       user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    ensure_group_owner_or_403(user["sub"], group_id)
    removal = remove_group_participant(group_id, participant_id, reassign_to=reassign_to)
    return {
        "msg": "Participant removed",
        "updated": [e.id for e in removal.updated],
        "deleted": removal.deleted,
    }
