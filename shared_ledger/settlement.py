"""Family balance solver and the greedy settlement primitive.

Balances are keyed by canonical identity. A positive balance means the group
owes that person money; a negative one means they owe the group.
"""

import logging
from typing import Dict, Iterable, List

from shared_ledger.apportion import apportion
from shared_ledger.config import SELF_PLACEHOLDER
from shared_ledger.identity import IdentityResolver
from shared_ledger.models import BalanceReport, Expense, Participant, Settlement, UnresolvedName
from shared_ledger.periods import monthly_amount, round_half_up

logger = logging.getLogger(__name__)

# Balances and transfers smaller than this are rounding noise
SETTLEMENT_THRESHOLD = 0.5


def suggest_settlements(
    balances: Dict[str, float],
    threshold: float = SETTLEMENT_THRESHOLD,
    ndigits: int = 0,
) -> List[Settlement]:
    """Greedy debtor/creditor matching.

    The largest remaining debtor pays the largest remaining creditor until one
    side is exhausted. Produces at most n - 1 transfers; ties keep the input
    order. Amounts are rounded half-up to `ndigits`.
    """
    creditors = [[u, amt] for u, amt in balances.items() if amt > threshold]
    debtors = [[u, -amt] for u, amt in balances.items() if amt < -threshold]

    def second_item(v): return v[1]
    creditors.sort(key=second_item, reverse=True)
    debtors.sort(key=second_item, reverse=True)

    suggestions: List[Settlement] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debt_user, debt_amt = debtors[i]
        cred_user, cred_amt = creditors[j]
        pay = min(debt_amt, cred_amt)
        if pay > threshold:
            suggestions.append(Settlement(payer=debt_user, payee=cred_user, amount=round_half_up(pay, ndigits)))
        debtors[i][1] = debt_amt - pay
        creditors[j][1] = cred_amt - pay
        if debtors[i][1] < threshold:
            i += 1
        if creditors[j][1] < threshold:
            j += 1
    return suggestions


def compute_balances(
    expenses: Iterable[Expense],
    participants: Iterable[Participant],
    self_placeholder: str = SELF_PLACEHOLDER,
) -> BalanceReport:
    """Paid vs. owed per member for one period, plus suggested transfers."""
    resolver = IdentityResolver(participants, self_placeholder)
    owed = {identity: 0.0 for identity in resolver.identities}
    paid = {identity: 0.0 for identity in resolver.identities}
    total = 0.0
    unassigned = 0.0
    unresolved: List[UnresolvedName] = []

    for e in expenses:
        amount = monthly_amount(e.total_amount, e.installments)
        owner = resolver.resolve_owner(e)
        shares, missing = apportion(e, resolver, amount)
        if owner:
            paid[owner] += amount
        else:
            # Unknown payer: the whole amount stays unassigned
            logger.warning("Expense %s: payer %r does not match any member", e.id, e.owner)
            shares = {}
        for identity, share in shares.items():
            owed[identity] += share
        unresolved.extend(UnresolvedName(expense_id=e.id, name=n) for n in missing)

        leftover = amount - sum(shares.values())
        if leftover > 1e-9:
            logger.info("Expense %s: %.2f of %.2f left unassigned", e.id, leftover, amount)
            unassigned += leftover
        total += amount

    balances = {identity: paid[identity] - owed[identity] for identity in resolver.identities}
    return BalanceReport(
        owed=owed,
        paid=paid,
        balances=balances,
        settlements=suggest_settlements(balances),
        total=total,
        unassigned=unassigned,
        display_names=dict(resolver.display_names),
        unresolved=unresolved,
    )


def labelled_settlements(report: BalanceReport) -> List[Settlement]:
    """Report transfers with display labels (e.g. "Yo") instead of canonical names."""
    names = report.display_names
    return [
        Settlement(payer=names.get(s.payer, s.payer), payee=names.get(s.payee, s.payee), amount=s.amount)
        for s in report.settlements
    ]
