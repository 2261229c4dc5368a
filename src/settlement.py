"""
settlement.py - settlement engine

Pure functions turning a trip snapshot (participants + expenses) into
per-participant balances and a transfer plan that settles them.

Nothing here performs I/O or keeps state: callers re-run the functions on
every change of the participant/expense lists (cost is linear in input size).

Interpretation:
  - paid       = sum of the amounts of the expenses paid by the participant
  - fair share = total expenses / number of participants (equal split)
  - balance    = paid - fair share
  - Positive balance => participant should receive money (creditor).
  - Negative balance => participant owes money (debtor).
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Sequence

from src.models import Expense, Participant, ParticipantBalance, Transfer

# balances and transfers below one cent are treated as settled
SETTLEMENT_TOLERANCE = 0.01

CENTS = Decimal("0.01")

CREDITOR = "creditor"
DEBTOR = "debtor"


@dataclass
class TripSummary:
    """Figures shown on the summary view, derived from a single snapshot."""
    total: float = 0.0
    per_person: float = 0.0
    balances: List[ParticipantBalance] = field(default_factory=list)
    transfers: List[Transfer] = field(default_factory=list)


def round2(value: float) -> float:
    """Round to cents, half away from zero (0.125 -> 0.13)."""
    return float(Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP))


def total_expenses(expenses: Sequence[Expense]) -> float:
    return sum(float(e.amount) for e in expenses)


def fair_share(total: float, participant_count: int) -> float:
    """Equal split of `total`; 0 when there is nobody to split with."""
    return total / participant_count if participant_count > 0 else 0.0


def compute_balances(
    participants: Sequence[Participant],
    expenses: Sequence[Expense],
) -> List[ParticipantBalance]:
    """
    Compute each participant's paid total and balance.

    Expenses paid by an id that is not in `participants` add nothing to any
    paid total but still count towards the total being split.

    The result preserves the order of `participants`.
    """
    paid: Dict[str, float] = {p.id: 0.0 for p in participants}
    for e in expenses:
        if e.paid_by in paid:
            paid[e.paid_by] += float(e.amount)

    share = fair_share(total_expenses(expenses), len(participants))

    out: List[ParticipantBalance] = []
    for p in participants:
        balance = paid[p.id] - share
        out.append(
            ParticipantBalance(
                id=p.id,
                name=p.name,
                paid=paid[p.id],
                fair_share=share,
                balance=balance,
                status=CREDITOR if balance >= 0 else DEBTOR,
            )
        )
    return out


def sorted_balances(balances: Sequence[ParticipantBalance]) -> List[ParticipantBalance]:
    """Most negative first; ties keep their input order (stable sort)."""
    return sorted(balances, key=lambda b: b.balance)


def compute_transfer_plan(balances: Sequence[ParticipantBalance]) -> List[Transfer]:
    """
    Greedy debtor/creditor matching.

    Debtors and creditors are taken from the ascending balance order and
    matched with two cursors: each step moves min(remaining debt, remaining
    credit) from the current debtor to the current creditor. Emitted amounts
    are rounded to cents, the running remainders are not.

    Never emits more than len(debtors) + len(creditors) - 1 transfers.
    """
    ordered = sorted_balances(balances)
    # [name, remaining]
    debtors = [[b.name, -b.balance] for b in ordered if b.balance < -SETTLEMENT_TOLERANCE]
    creditors = [[b.name, b.balance] for b in ordered if b.balance > SETTLEMENT_TOLERANCE]

    transfers: List[Transfer] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]
        amount = min(debtor[1], creditor[1])
        if amount > SETTLEMENT_TOLERANCE:
            transfers.append(Transfer(from_name=debtor[0], to_name=creditor[0], amount=round2(amount)))
        # a sub-cent step is still consumed so that one cursor always advances
        debtor[1] -= amount
        creditor[1] -= amount
        if debtor[1] < SETTLEMENT_TOLERANCE:
            i += 1
        if creditor[1] < SETTLEMENT_TOLERANCE:
            j += 1
    return transfers


def apply_transfers(
    balances: Sequence[ParticipantBalance],
    transfers: Sequence[Transfer],
) -> Dict[str, float]:
    """
    Replay a plan against the balances and return the residual per name.
    Paying raises the debtor's balance and lowers the creditor's.
    """
    residual: Dict[str, float] = {}
    for b in balances:
        residual[b.name] = residual.get(b.name, 0.0) + b.balance
    for t in transfers:
        residual[t.from_name] = residual.get(t.from_name, 0.0) + t.amount
        residual[t.to_name] = residual.get(t.to_name, 0.0) - t.amount
    return residual


def summarize(
    participants: Sequence[Participant],
    expenses: Sequence[Expense],
) -> TripSummary:
    total = total_expenses(expenses)
    balances = compute_balances(participants, expenses)
    return TripSummary(
        total=total,
        per_person=fair_share(total, len(participants)),
        balances=balances,
        transfers=compute_transfer_plan(balances),
    )
