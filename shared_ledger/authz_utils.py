"""Authorization helpers for the ledger service.

Subscription, group-ownership and family-scope checks using local Supabase
queries only.
"""

from fastapi import HTTPException

from shared_ledger.config import ALLOWED_SUBSCRIPTION_STATUSES
from shared_ledger.utils import get_supabase_client


def has_active_subscription(user_id: str) -> bool:
    """Return True if the user's subscription unlocks the ledger sections."""
    supabase = get_supabase_client()
    res = supabase.table("user_subscriptions").select("status").eq("user_id", user_id).limit(1).execute()
    if not res.data:
        return False
    return res.data[0].get("status") in ALLOWED_SUBSCRIPTION_STATUSES


def ensure_subscription_or_403(user_id: str):
    if not has_active_subscription(user_id):
        raise HTTPException(status_code=403, detail="An active subscription is required")


def get_group_owner(group_id: str) -> str | None:
    """Return the user_id owning the event group or None if not found."""
    supabase = get_supabase_client()
    res = supabase.table("groups").select("user_id").eq("id", group_id).execute()
    if not res.data:
        return None
    return res.data[0]["user_id"]


def ensure_group_owner_or_403(user_id: str, group_id: str):
    """Raise 404 for an unknown group and 403 if the caller does not own it."""
    owner = get_group_owner(group_id)
    if owner is None:
        raise HTTPException(status_code=404, detail="Group not found")
    if owner != user_id:
        raise HTTPException(status_code=403, detail="Not the owner of this group")


def family_scope(user_id: str) -> list[str]:
    """Account ids whose family expenses the user may see (self first)."""
    supabase = get_supabase_client()
    ids = [user_id]
    mine = supabase.table("family_members").select("member_id").eq("owner_id", user_id).execute().data or []
    theirs = supabase.table("family_members").select("owner_id").eq("member_id", user_id).execute().data or []
    for uid in [r.get("member_id") for r in mine] + [r.get("owner_id") for r in theirs]:
        if uid and uid not in ids:
            ids.append(uid)
    return ids


def ensure_expense_in_family_or_404(user_id: str, expense_id: str) -> dict:
    """Return the expense row if it belongs to the caller's family, else 404."""
    supabase = get_supabase_client()
    res = supabase.table("expenses").select("*").eq("id", expense_id).execute()
    if not res.data or res.data[0].get("user_id") not in family_scope(user_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    return res.data[0]
