"""Presentation helpers that format solver output; nothing here recomputes balances."""

from typing import Dict, Iterable, List

from shared_ledger.apportion import person_share
from shared_ledger.models import BalanceReport, Expense, HealthReport, MonthlyCharge, ShareType
from shared_ledger.periods import format_currency, month_key_to_label, monthly_amount
from shared_ledger.settlement import labelled_settlements

SEPARATOR = "─" * 25


def category_totals(charges: Iterable[MonthlyCharge]) -> Dict[str, float]:
    """Monthly amount per category, largest first."""
    totals: Dict[str, float] = {}
    for c in charges:
        cat = c.expense.category or "Otros"
        totals[cat] = totals.get(cat, 0.0) + c.amount
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def person_summary(expenses: Iterable[Expense], person: str) -> dict:
    """Breakdown of what one person owes: by share type and by category."""
    relevant = []
    by_type = {t.value: 0.0 for t in ShareType}
    by_category: Dict[str, float] = {}
    for e in expenses:
        share = person_share(e, person)
        if share <= 0:
            continue
        relevant.append({"id": e.id, "description": e.description, "share": share,
                         "installment": e.current_installment, "installments": e.installments})
        by_type[e.mode.value] += share
        cat = e.category or "Otros"
        by_category[cat] = by_category.get(cat, 0.0) + share
    return {
        "person": person,
        "total": sum(by_type.values()),
        "by_share_type": by_type,
        "by_category": by_category,
        "expenses": relevant,
    }


def monthly_summary_text(report: BalanceReport, charges: List[MonthlyCharge], month: str) -> str:
    """Plain-text month summary meant to be pasted into a chat."""
    lines = ["💰 *RESUMEN GASTOS FAMILIARES*", f"📅 {month_key_to_label(month).upper()}", SEPARATOR, ""]
    for identity, amount in report.owed.items():
        lines.append(f"• *{report.display_names.get(identity, identity)}:* {format_currency(amount)}")
    lines += ["", SEPARATOR, f"💵 *TOTAL MES:* {format_currency(report.total)}", SEPARATOR]

    settlements = labelled_settlements(report)
    if settlements:
        lines += ["", "💸 *PARA SALDAR:*"]
        lines += [f"{s.payer} → {s.payee}: {format_currency(s.amount)}" for s in settlements]

    if charges:
        lines += ["", "📋 *DETALLE DE GASTOS:*", ""]
        for c in charges:
            e = c.expense
            cuota = f" ({c.installment}/{e.installments})" if e.installments > 1 else ""
            lines.append(f"• {e.description}{cuota}")
            lines.append(f"  {format_currency(c.amount)} - {e.owner}")
    return "\n".join(lines) + "\n"


def summary_csv(report: BalanceReport, charges: List[MonthlyCharge]) -> str:
    lines = ["type,name,amount", f"total,,{round(report.total, 2)}"]
    for identity, amount in report.owed.items():
        name = report.display_names.get(identity, identity).replace(",", " ")
        lines.append(f"owed,{name},{round(amount, 2)}")
    for identity, amount in report.balances.items():
        name = report.display_names.get(identity, identity).replace(",", " ")
        lines.append(f"balance,{name},{round(amount, 2)}")
    for cat, amount in category_totals(charges).items():
        lines.append(f"category,{cat.replace(',', ' ')},{round(amount, 2)}")
    for s in labelled_settlements(report):
        lines.append(f"settlement,{s.payer.replace(',', ' ')} -> {s.payee.replace(',', ' ')},{s.amount}")
    return "\n".join(lines) + "\n"


def personal_total(expenses: Iterable[Expense]) -> float:
    return sum(monthly_amount(e.total_amount, e.installments) for e in expenses)


def financial_health(income: float, personal: float, family_share: float) -> HealthReport:
    """How a month's income is used by personal spend and the family share."""
    total_expenses = personal + family_share
    if income > 0:
        personal_pct = min(personal / income * 100, 100.0)
        family_pct = min(family_share / income * 100, 100.0 - personal_pct)
    else:
        personal_pct = family_pct = 0.0
    free_margin = income - total_expenses
    return HealthReport(
        income=income,
        personal=personal,
        family_share=family_share,
        total_expenses=total_expenses,
        free_margin=free_margin,
        personal_pct=personal_pct,
        family_pct=family_pct,
        is_critical=free_margin < 0,
    )
