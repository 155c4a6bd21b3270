"""Family ledger routes: monthly view, balances, installments and reports."""

import io
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from shared_ledger.authz_utils import ensure_expense_in_family_or_404, ensure_subscription_or_403
from shared_ledger.config import HISTORY_MONTHS, SELF_PLACEHOLDER
from shared_ledger.models import HealthRequest
from shared_ledger.periods import current_month_key, month_key_to_label, parse_month_key, recent_months, upcoming_months
from shared_ledger.reports import category_totals, financial_health, monthly_summary_text, person_summary, summary_csv
from shared_ledger.services import load_family_charges, load_family_people, load_personal_total, mark_installment_paid
from shared_ledger.settlement import compute_balances, labelled_settlements
from shared_ledger.utils import display_name_for, get_current_user

router = APIRouter()


def _resolve_month(month: Optional[str]) -> str:
    if not month:
        return current_month_key()
    try:
        parse_month_key(month)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return month


def _month_report(user: dict, month: str, view: str = "history"):
    # The live view of the current month hides completed plans
    include_completed = not (view == "current" and month == current_month_key())
    charges = load_family_charges(user["sub"], month, include_completed=include_completed)
    people = load_family_people(user)
    report = compute_balances([c.expense for c in charges], people)
    return charges, report


@router.get("/family/months", summary="Current month, history and first-charge choices", tags=["Family"])
def list_months(user=Depends(get_current_user)):
    current = current_month_key()
    return {
        "current": {"key": current, "label": month_key_to_label(current)},
        "history": [{"key": m, "label": month_key_to_label(m)} for m in recent_months(HISTORY_MONTHS)],
        "first_charge_options": [{"key": m, "label": month_key_to_label(m)} for m in upcoming_months()],
    }


@router.get("/family/expenses", summary="Family charges billed in a month", tags=["Family"])
def month_expenses(month: Optional[str] = Query(None, description="YYYY-MM"),
                   view: Literal["current", "history"] = "current", user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    month = _resolve_month(month)
    include_completed = not (view == "current" and month == current_month_key())
    charges = load_family_charges(user["sub"], month, include_completed=include_completed)
    return {
        "month": month,
        "label": month_key_to_label(month),
        "charges": [c.model_dump() for c in charges],
        "by_category": category_totals(charges),
        "total": sum(c.amount for c in charges),
    }


@router.get("/family/balances", summary="Who owes what and suggested transfers", tags=["Balances"])
def family_balances(month: Optional[str] = Query(None, description="YYYY-MM"),
                    view: Literal["current", "history"] = "current", user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    month = _resolve_month(month)
    _, report = _month_report(user, month, view)
    body = report.model_dump(by_alias=True)
    body["month"] = month
    body["labelled_settlements"] = [s.model_dump(by_alias=True) for s in labelled_settlements(report)]
    return body


@router.get("/family/people/{name}/summary", summary="What one person owes this month", tags=["Balances"])
def family_person_summary(name: str, month: Optional[str] = Query(None, description="YYYY-MM"),
                          user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    month = _resolve_month(month)
    person = display_name_for(user) if name == SELF_PLACEHOLDER else name
    charges = load_family_charges(user["sub"], month)
    return person_summary([c.expense for c in charges], person)


@router.post("/family/expenses/{expense_id}/installments/pay", summary="Mark the current installment paid", tags=["Family"])
def pay_installment(expense_id: str, user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    row = ensure_expense_in_family_or_404(user["sub"], expense_id)
    try:
        return mark_installment_paid(row)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/family/health", summary="Income vs. personal spend and family share", tags=["Family"])
def family_health(body: HealthRequest, month: Optional[str] = Query(None, description="YYYY-MM"),
                  user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    month = _resolve_month(month)
    personal = body.personal_total
    if personal is None:
        personal = load_personal_total(user["sub"], month)
    family_share = body.family_share
    if family_share is None:
        _, report = _month_report(user, month)
        family_share = report.owed.get(display_name_for(user), 0.0)
    return financial_health(body.income, personal, family_share)


@router.get("/reports/family/summary.txt", summary="Month summary as shareable text", tags=["Reports"])
def family_summary_text(month: Optional[str] = Query(None, description="YYYY-MM"), user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    month = _resolve_month(month)
    charges, report = _month_report(user, month)
    return Response(content=monthly_summary_text(report, charges, month), media_type="text/plain; charset=utf-8")


@router.get("/reports/family/summary.csv", summary="Month summary (CSV)", tags=["Reports"])
def family_summary_csv(month: Optional[str] = Query(None, description="YYYY-MM"), user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    month = _resolve_month(month)
    charges, report = _month_report(user, month)
    headers = {"Content-Disposition": f"attachment; filename=family_{month}_summary.csv"}
    return Response(content=summary_csv(report, charges), media_type="text/csv", headers=headers)


@router.get("/reports/family/summary.pdf", summary="Month summary (PDF)", tags=["Reports"])
def family_summary_pdf(month: Optional[str] = Query(None, description="YYYY-MM"), user=Depends(get_current_user)):
    ensure_subscription_or_403(user["sub"])
    month = _resolve_month(month)
    charges, report = _month_report(user, month)
    try:
        from reportlab.pdfgen import canvas  # type: ignore
    except Exception:
        raise HTTPException(status_code=500, detail="PDF generation not available: install reportlab")
    buf = io.BytesIO()
    c = canvas.Canvas(buf)
    y = 800
    c.setFont("Helvetica", 14)
    c.drawString(40, y, f"Resumen {month_key_to_label(month)}")
    y -= 20
    c.drawString(40, y, f"Total: {round(report.total, 2)}")
    y -= 30
    c.setFont("Helvetica", 12)
    c.drawString(40, y, "Por persona:")
    y -= 20
    for identity, amt in report.owed.items():
        c.drawString(60, y, f"- {report.display_names.get(identity, identity)}: {round(amt, 2)}")
        y -= 16
    y -= 10
    c.drawString(40, y, "Para saldar:")
    y -= 20
    for s in labelled_settlements(report):
        c.drawString(60, y, f"- {s.payer} -> {s.payee}: {s.amount}")
        y -= 16
    y -= 10
    c.drawString(40, y, "Por categoria:")
    y -= 20
    for cat, amt in category_totals(charges).items():
        c.drawString(60, y, f"- {cat}: {round(amt, 2)}")
        y -= 16
    c.showPage()
    c.save()
    buf.seek(0)
    headers = {"Content-Disposition": f"attachment; filename=family_{month}_summary.pdf"}
    return Response(content=buf.getvalue(), media_type="application/pdf", headers=headers)
