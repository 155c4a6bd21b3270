"""Per-expense apportionment: who owes how much of one month's charge."""

import logging
from typing import Dict, List, Optional, Tuple

from shared_ledger.identity import IdentityResolver, normalize_name, parse_name_list
from shared_ledger.models import Expense, ShareType
from shared_ledger.periods import monthly_amount

logger = logging.getLogger(__name__)


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and normalize_name(a) == normalize_name(b)


def person_share(expense: Expense, person: str, amount: Optional[float] = None) -> float:
    """Fixed-mode share of `person` in one expense, matched by name.

    shared2 halves between the owner and the first listed name, shared3 is a
    third for every member of the three-person household, N-way values split
    evenly among owner plus listed names.
    """
    if amount is None:
        amount = monthly_amount(expense.total_amount, expense.installments)
    names = parse_name_list(expense.shared_with)
    mode = expense.mode

    if mode == ShareType.PERSONAL:
        return amount if _same(expense.owner, person) else 0.0
    if mode == ShareType.SHARED2:
        if _same(expense.owner, person) or (names and _same(names[0], person)):
            return amount / 2
        return 0.0
    if mode == ShareType.SHARED3:
        return amount / 3
    if mode == ShareType.BELONGS_TO_OTHER:
        return amount if names and _same(names[0], person) else 0.0
    if mode == ShareType.SHARED:
        members: List[str] = []
        for n in [expense.owner] + names:
            if n and not any(_same(n, m) for m in members):
                members.append(n)
        if any(_same(m, person) for m in members):
            return amount / len(members)
        return 0.0
    raise ValueError(f"Unhandled share type: {mode}")


def apportion(
    expense: Expense,
    resolver: IdentityResolver,
    amount: Optional[float] = None,
) -> Tuple[Dict[str, float], List[str]]:
    """Split one expense's monthly amount among resolved identities.

    Returns (shares, unresolved_names). Shares only ever contain identities
    known to the resolver; names that do not resolve are left out of the
    split (and out of the denominator) and reported back. When nobody
    resolves the shares are empty and the amount stays unassigned.
    """
    if amount is None:
        amount = monthly_amount(expense.total_amount, expense.installments)
    owner = resolver.resolve_owner(expense)
    names = resolver.shared_names(expense)
    mode = expense.mode
    unresolved: List[str] = []

    if mode == ShareType.BELONGS_TO_OTHER:
        if not names:
            return {}, unresolved
        target = resolver.resolve(names[0])
        if target is None:
            unresolved.append(names[0])
            _log_unresolved(expense, unresolved)
            return {}, unresolved
        return {target: amount}, unresolved

    if mode == ShareType.PERSONAL or not names:
        return ({owner: amount} if owner else {}), unresolved

    if mode in (ShareType.SHARED2, ShareType.SHARED3, ShareType.SHARED):
        members: List[str] = [owner] if owner else []
        for name in names:
            identity = resolver.resolve(name)
            if identity is None:
                unresolved.append(name)
            elif identity not in members:
                members.append(identity)
        _log_unresolved(expense, unresolved)
        if not members:
            return {}, unresolved
        share = amount / len(members)
        return {m: share for m in members}, unresolved

    raise ValueError(f"Unhandled share type: {mode}")


def _log_unresolved(expense: Expense, names: List[str]) -> None:
    for name in names:
        logger.warning("Expense %s: participant %r does not match any member; left out of the split",
                       expense.id, name)
