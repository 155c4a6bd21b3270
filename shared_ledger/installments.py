"""Installment windows: which month bills which installment of an expense."""

from typing import Dict, Iterable, List, Optional

from shared_ledger.models import Expense, MonthlyCharge
from shared_ledger.periods import monthly_amount, months_between, shift_month


def installment_index(first_month: str, target_month: str) -> int:
    """1-based installment number that `target_month` would bill."""
    return 1 + months_between(first_month, target_month)


def installment_for_month(first_month: Optional[str], installments: int, target_month: str) -> Optional[int]:
    """Installment billed in target_month, or None when outside the window."""
    if not first_month:
        return None
    index = installment_index(first_month, target_month)
    if 1 <= index <= installments:
        return index
    return None


def is_active_in_month(expense: Expense, target_month: str) -> bool:
    return installment_for_month(expense.first_month, expense.installments, target_month) is not None


def active_months(expense: Expense) -> List[str]:
    """Every month the expense bills, first charge first."""
    if not expense.first_month:
        return []
    return [shift_month(expense.first_month, i) for i in range(expense.installments)]


def expenses_for_month(
    expenses: Iterable[Expense],
    month: str,
    include_completed: bool = True,
) -> List[MonthlyCharge]:
    """Charges that make up one month's view.

    Two disjoint sets are merged: records dated in the month itself, and
    installment plans dated in an earlier month whose window still covers
    this one. Pass include_completed=False for the live current-month view.
    """
    primary: List[MonthlyCharge] = []
    carried: List[MonthlyCharge] = []
    for e in expenses:
        if not include_completed and e.status not in (None, "", "active"):
            continue
        record_month = e.record_month or e.first_charge_month
        if not record_month:
            continue
        amount = monthly_amount(e.total_amount, e.installments)
        if record_month == month:
            index = installment_for_month(e.first_month, e.installments, month)
            if index is None:
                # A plan billed from another month is picked up by its own window
                if e.first_charge_month and e.installments > 1:
                    continue
                index = e.current_installment
            primary.append(MonthlyCharge(expense=e, installment=index, amount=amount))
        elif record_month < month and e.installments > 1:
            index = installment_for_month(e.first_month, e.installments, month)
            if index is not None:
                carried.append(MonthlyCharge(expense=e, installment=index, amount=amount, carried_over=True))
    return primary + carried


def advance_installment(expense: Expense) -> Dict[str, object]:
    """Fields to write when the current installment is marked paid.

    Paying the last installment closes the plan.
    """
    if expense.installments < 1:
        raise ValueError(f"Expense {expense.id} has an invalid installment count: {expense.installments}")
    if expense.current_installment >= expense.installments:
        return {"current_installment": expense.installments, "status": "completed"}
    return {"current_installment": expense.current_installment + 1, "status": "active"}
