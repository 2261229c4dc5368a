"""
trip.py - trip ledger: participant/expense bookkeeping around the settlement engine

Responsibilities:
 - keep the in-memory participant and expense lists of one trip
 - validate additions (blank names/descriptions, non-positive amounts, unknown payers)
 - cascade-remove a participant's expenses when the participant is removed
 - persist every change through a TripStore snapshot
 - expose balances / transfer plan / summary computed fresh from the lists
"""

from typing import List, Optional, Union
import logging
import uuid

from src.models import Expense, Participant, ParticipantBalance, Transfer
from src.settlement import TripSummary, compute_balances, compute_transfer_plan, summarize
from src.storage import TripStore, generate_trip_id, normalize_trip_id

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def _new_id() -> str:
    return uuid.uuid4().hex


def parse_amount(value: Union[str, float, int]) -> float:
    """
    Accept numbers or numeric strings ("12.50", "12,50").
    Raises ValueError for anything that is not a positive finite amount.
    """
    if isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            raise ValueError("amount is required")
        try:
            amount = float(text)
        except ValueError:
            raise ValueError(f"invalid amount: {value!r}") from None
    else:
        try:
            amount = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"invalid amount: {value!r}") from None
    # NaN fails every comparison, inf is rejected explicitly
    if not amount > 0 or amount == float("inf"):
        raise ValueError(f"amount must be greater than zero, got {value!r}")
    return amount


class TripLedger:
    """
    One trip's participants and expenses.

    The ledger loads its snapshot on construction; a trip id with no stored
    data starts empty and is saved immediately so it shows up in listings.
    """

    def __init__(self, trip_id: Optional[str] = None, store: Optional[TripStore] = None):
        self.store = store or TripStore()
        self.trip_id = normalize_trip_id(trip_id) or generate_trip_id()
        self.participants: List[Participant] = []
        self.expenses: List[Expense] = []
        self.last_updated = 0
        self.load()

    # -----------------------
    # Persistence
    # -----------------------
    def load(self) -> bool:
        """
        Replace in-memory state with the stored snapshot.
        Returns False when no snapshot existed (a new empty trip is saved).
        An unreadable trip file raises TripDataError and is left untouched.
        """
        snapshot = self.store.load_snapshot(self.trip_id)
        if snapshot is None:
            logger.info("No data for trip %s, starting an empty trip", self.trip_id)
            self.participants = []
            self.expenses = []
            self.save()
            return False
        self.participants = list(snapshot.participants)
        self.expenses = list(snapshot.expenses)
        self.last_updated = snapshot.last_updated
        return True

    def refresh(self) -> bool:
        """Re-read the stored snapshot (e.g. after another client saved)."""
        return self.load()

    def save(self):
        snapshot = self.store.save_snapshot(self.trip_id, self.participants, self.expenses)
        self.last_updated = snapshot.last_updated

    def new_trip(self) -> str:
        """Switch to a fresh, empty trip and return its id."""
        self.trip_id = generate_trip_id()
        self.participants = []
        self.expenses = []
        self.save()
        logger.info("Started new trip %s", self.trip_id)
        return self.trip_id

    # -----------------------
    # Participants
    # -----------------------
    def get_participant(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def add_participant(self, name: str) -> Participant:
        name = (name or "").strip()
        if not name:
            logger.warning("Rejected participant with a blank name")
            raise ValueError("participant name is required")
        participant = Participant(id=_new_id(), name=name)
        self.participants.append(participant)
        self.save()
        return participant

    def remove_participant(self, participant_id: str) -> bool:
        """
        Remove a participant and every expense they paid.
        Returns False if the id is unknown.
        """
        if self.get_participant(participant_id) is None:
            logger.info("Participant id=%s not found", participant_id)
            return False
        kept = [e for e in self.expenses if e.paid_by != participant_id]
        removed_expenses = len(self.expenses) - len(kept)
        self.expenses = kept
        self.participants = [p for p in self.participants if p.id != participant_id]
        self.save()
        logger.info(
            "Removed participant id=%s and %d expense(s) paid by them", participant_id, removed_expenses
        )
        return True

    # -----------------------
    # Expenses
    # -----------------------
    def add_expense(self, description: str, amount: Union[str, float, int], paid_by: str) -> Expense:
        """
        Record an expense paid by an existing participant.
        The payer's current name is copied onto the expense.
        """
        description = (description or "").strip()
        if not description:
            logger.warning("Rejected expense with a blank description")
            raise ValueError("expense description is required")
        try:
            value = parse_amount(amount)
        except ValueError:
            logger.warning("Rejected expense %r with amount %r", description, amount)
            raise
        if not paid_by:
            raise ValueError("the paying participant is required")
        payer = self.get_participant(paid_by)
        if payer is None:
            logger.warning("Rejected expense %r paid by unknown participant %s", description, paid_by)
            raise ValueError(f"unknown participant: {paid_by}")

        expense = Expense(
            id=_new_id(),
            description=description,
            amount=value,
            paid_by=payer.id,
            paid_by_name=payer.name,
        )
        self.expenses.append(expense)
        self.save()
        return expense

    def remove_expense(self, expense_id: str) -> bool:
        for i, e in enumerate(self.expenses):
            if e.id == expense_id:
                self.expenses.pop(i)
                self.save()
                logger.info("Deleted expense id=%s (amount=%s)", expense_id, e.amount)
                return True
        logger.info("Expense id=%s not found", expense_id)
        return False

    # -----------------------
    # Derived figures
    # -----------------------
    def balances(self) -> List[ParticipantBalance]:
        return compute_balances(self.participants, self.expenses)

    def transfer_plan(self) -> List[Transfer]:
        return compute_transfer_plan(self.balances())

    def summary(self) -> TripSummary:
        return summarize(self.participants, self.expenses)
