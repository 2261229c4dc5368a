"""
report.py - presentation helpers for a trip summary

 - format_currency: pt-BR style amounts ("R$ 1.234,56")
 - *_frame: pandas DataFrames for expenses / balances / transfers
 - summary_lines: plain-text summary (total, per person, who pays whom)
 - export_xlsx: workbook with one sheet per table
"""

from io import BytesIO
from typing import List, Optional, Sequence

import pandas as pd

from src.models import Expense, ParticipantBalance, Transfer
from src.settlement import TripSummary

DEFAULT_SYMBOL = "R$"

BALANCE_COLUMNS = ["id", "name", "paid", "fair_share", "balance", "status"]
TRANSFER_COLUMNS = ["from", "to", "amount"]
EXPENSE_COLUMNS = ["id", "description", "amount", "paid_by", "paid_by_name"]


def format_currency(value: float, symbol: str = DEFAULT_SYMBOL) -> str:
    """1234.5 -> "R$ 1.234,50"; negatives get a leading minus."""
    text = f"{abs(value):,.2f}"
    # swap separators: "1,234.50" -> "1.234,50"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if round(value, 2) < 0 else ""
    return f"{sign}{symbol} {text}"


def balances_frame(balances: Sequence[ParticipantBalance]) -> pd.DataFrame:
    rows = [
        {
            "id": b.id,
            "name": b.name,
            "paid": float(b.paid),
            "fair_share": float(b.fair_share),
            "balance": float(b.balance),
            "status": b.status,
        }
        for b in balances
    ]
    return pd.DataFrame(rows, columns=BALANCE_COLUMNS)


def transfers_frame(transfers: Sequence[Transfer]) -> pd.DataFrame:
    rows = [{"from": t.from_name, "to": t.to_name, "amount": float(t.amount)} for t in transfers]
    return pd.DataFrame(rows, columns=TRANSFER_COLUMNS)


def expenses_frame(expenses: Sequence[Expense]) -> pd.DataFrame:
    rows = [
        {
            "id": e.id,
            "description": e.description,
            "amount": float(e.amount),
            "paid_by": e.paid_by,
            "paid_by_name": e.paid_by_name,
        }
        for e in expenses
    ]
    return pd.DataFrame(rows, columns=EXPENSE_COLUMNS)


def summary_lines(summary: TripSummary, symbol: str = DEFAULT_SYMBOL) -> List[str]:
    lines = [
        f"Total: {format_currency(summary.total, symbol)}",
        f"Per person: {format_currency(summary.per_person, symbol)}",
    ]
    if not summary.transfers:
        lines.append("Nothing to settle.")
    for t in summary.transfers:
        lines.append(f"{t.from_name} pays {t.to_name} {format_currency(t.amount, symbol)}")
    return lines


def export_xlsx(
    summary: TripSummary,
    expenses: Sequence[Expense],
    target: Optional[str] = None,
) -> bytes:
    """
    Build an XLSX workbook (sheets: expenses, balances, transfers) and return
    its bytes; also written to `target` when a path is given.
    """
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        expenses_frame(expenses).to_excel(writer, index=False, sheet_name="expenses")
        balances_frame(summary.balances).to_excel(writer, index=False, sheet_name="balances")
        transfers_frame(summary.transfers).to_excel(writer, index=False, sheet_name="transfers")
    data = buffer.getvalue()
    if target:
        with open(target, "wb") as f:
            f.write(data)
    return data
