import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException

from shared_ledger.authz_utils import family_scope
from shared_ledger.config import SELF_PLACEHOLDER
from shared_ledger.group_ledger import remove_participant
from shared_ledger.installments import advance_installment, expenses_for_month
from shared_ledger.models import Expense, GroupExpense, GroupParticipant, MonthlyCharge, Participant, ParticipantRemoval
from shared_ledger.periods import month_date_range
from shared_ledger.reports import personal_total
from shared_ledger.utils import display_name_for, get_supabase_client

logger = logging.getLogger(__name__)


def _owner_participant(user: dict) -> Participant:
    # The viewer is shown as the placeholder but matched by the name the forms store
    return Participant(
        id="owner",
        name=SELF_PLACEHOLDER,
        real_name=display_name_for(user),
        member_id=user.get("sub"),
        email=user.get("email"),
    )


def load_family_people(user: dict) -> List[Participant]:
    """Viewer first, then the family members they registered."""
    supabase = get_supabase_client()
    try:
        rows = supabase.table("family_members").select("*").eq("owner_id", user["sub"]).order("created_at").execute().data or []
        members = [
            Participant(
                id=r.get("id"),
                name=r.get("member_name") or (r.get("member_email") or "").split("@")[0],
                email=r.get("member_email"),
                member_id=r.get("member_id"),
            )
            for r in rows
        ]
    except Exception as e:
        # Older accounts keep their people in the legacy table
        logger.warning("family_members unavailable (%s); falling back to people table", e)
        rows = supabase.table("people").select("*").eq("group_type", "family").order("created_at").execute().data or []
        members = [Participant(id=r.get("id"), name=r["name"]) for r in rows if r.get("name")]
    return [_owner_participant(user)] + [m for m in members if m.name]


def load_family_charges(user_id: str, month: str, include_completed: bool = True) -> List[MonthlyCharge]:
    """A month's family charges: records dated in the month plus carried-over installments."""
    supabase = get_supabase_client()
    scope = family_scope(user_id)
    start, end = month_date_range(month)
    dated = (
        supabase.table("expenses").select("*")
        .in_("user_id", scope).gte("date", start).lte("date", end)
        .neq("section", "personal").order("date", desc=True)
        .execute().data or []
    )
    earlier = (
        supabase.table("expenses").select("*")
        .in_("user_id", scope).lt("date", start).gt("installments", 1)
        .neq("section", "personal")
        .execute().data or []
    )
    expenses = [Expense(**row) for row in dated + earlier]
    return expenses_for_month(expenses, month, include_completed=include_completed)


def load_personal_total(user_id: str, month: str) -> float:
    supabase = get_supabase_client()
    rows = supabase.table("expenses").select("*").eq("user_id", user_id).eq("section", "personal").eq("month", month).execute().data or []
    return personal_total(Expense(**row) for row in rows)


def mark_installment_paid(row: dict) -> dict:
    """Advance an expense to its next installment and persist the change."""
    expense = Expense(**row)
    update = advance_installment(expense)
    supabase = get_supabase_client()
    res = supabase.table("expenses").update(update).eq("id", expense.id).execute()
    if not res.data:
        raise HTTPException(status_code=500, detail="Failed to update expense")
    return {"expense_id": expense.id, **update}


def load_group(group_id: str) -> Tuple[List[GroupParticipant], List[GroupExpense]]:
    supabase = get_supabase_client()
    parts = supabase.table("group_participants").select("*").eq("group_id", group_id).order("created_at").execute().data or []
    exps = supabase.table("group_expenses").select("*").eq("group_id", group_id).order("created_at", desc=True).execute().data or []
    return [GroupParticipant(**p) for p in parts], [GroupExpense(**e) for e in exps]


def remove_group_participant(group_id: str, participant_id: str, reassign_to: Optional[str] = None) -> ParticipantRemoval:
    """Delete a participant after rewriting every expense that names them."""
    participants, expenses = load_group(group_id)
    target = next((p for p in participants if p.id == participant_id), None)
    if target is None:
        raise HTTPException(status_code=404, detail="Participant not found")
    try:
        removal = remove_participant(expenses, target.name, reassign_to=reassign_to)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    supabase = get_supabase_client()
    for exp in removal.updated:
        res = supabase.table("group_expenses").update({"paid_by": exp.paid_by, "split_with": exp.split_with}).eq("id", exp.id).execute()
        if not res.data:
            raise HTTPException(status_code=500, detail=f"Failed to update group expense {exp.id}")
    if removal.deleted:
        res = supabase.table("group_expenses").delete().in_("id", removal.deleted).execute()
        if not res.data:
            raise HTTPException(status_code=500, detail="Failed to delete group expenses")
    res = supabase.table("group_participants").delete().eq("id", participant_id).execute()
    if not res.data:
        raise HTTPException(status_code=500, detail="Failed to delete participant")
    return removal
