"""Event-group ledger: equal splits among free-text participant names."""

import logging
from typing import Dict, Iterable, List, Optional

from shared_ledger.models import GroupExpense, GroupReport, ParticipantRemoval
from shared_ledger.settlement import suggest_settlements

logger = logging.getLogger(__name__)

# Group amounts are settled to the cent
GROUP_THRESHOLD = 0.01
GROUP_DIGITS = 2


def compute_group_balances(participants: Iterable[str], expenses: Iterable[GroupExpense]) -> Dict[str, float]:
    """Net balance per participant name.

    The payer is credited what the others consumed (the whole amount when
    they are not part of the split); every other name in the split is
    debited its equal share. Names outside `participants` are ignored.
    """
    balances = {name: 0.0 for name in participants}
    for exp in expenses:
        if not exp.split_with:
            logger.warning("Group expense %s has nobody to split with; skipped", exp.id)
            continue
        per_person = exp.amount / len(exp.split_with)
        if exp.paid_by in balances:
            if exp.paid_by in exp.split_with:
                balances[exp.paid_by] += exp.amount - per_person
            else:
                balances[exp.paid_by] += exp.amount
        for name in exp.split_with:
            if name != exp.paid_by and name in balances:
                balances[name] -= per_person
    return balances


def settle_group(participants: Iterable[str], expenses: Iterable[GroupExpense]) -> GroupReport:
    expenses = list(expenses)
    balances = compute_group_balances(participants, expenses)
    return GroupReport(
        balances=balances,
        settlements=suggest_settlements(balances, threshold=GROUP_THRESHOLD, ndigits=GROUP_DIGITS),
        total=sum(e.amount for e in expenses),
    )


def remove_participant(
    expenses: Iterable[GroupExpense],
    name: str,
    reassign_to: Optional[str] = None,
) -> ParticipantRemoval:
    """Rewrite the group's expenses so `name` no longer appears in them.

    `name` is dropped from every split list. Expenses they paid move to
    `reassign_to` (default: the first remaining co-participant). Expenses
    left with nobody to split among are deleted.
    """
    updated: List[GroupExpense] = []
    deleted: List[str] = []
    for exp in expenses:
        if name not in exp.split_with and exp.paid_by != name:
            continue
        remaining = [n for n in exp.split_with if n != name]
        if not remaining:
            deleted.append(exp.id)
            logger.info("Group expense %s deleted: no participants left after removing %r", exp.id, name)
            continue
        payer = exp.paid_by
        if payer == name:
            if reassign_to is None:
                payer = remaining[0]
            elif reassign_to in remaining:
                payer = reassign_to
            else:
                raise ValueError(f"{reassign_to!r} is not a remaining participant of expense {exp.id}")
        updated.append(exp.model_copy(update={"split_with": remaining, "paid_by": payer}))
        logger.info("Group expense %s rewritten without %r (paid by %r)", exp.id, name, payer)
    return ParticipantRemoval(updated=updated, deleted=deleted)
