"""
models.py - Data model definitions

This file defines the dataclasses shared by the settlement engine, the trip
ledger and the snapshot store. Records are serialized to/from simple dicts so
a trip can be persisted as JSON (one file per trip, see src.storage).

Participants do not carry a stored `paid` amount: what a participant paid is
always derived from the expense list by src.settlement.compute_balances.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any


@dataclass
class Participant:
    """A member of the trip. `id` is unique within the trip."""
    id: str = ""
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Participant":
        # a legacy "paid" key may be present in older files; it is ignored
        return Participant(
            id=str(d.get("id", "") or ""),
            name=str(d.get("name", "") or ""),
        )


@dataclass
class Expense:
    """
    Represents a single shared expense.

    Fields:
      - id: unique id assigned by the ledger
      - description: non-empty free text (e.g. "Fuel", "Bait")
      - amount: positive amount paid
      - paid_by: id of the participant who paid
      - paid_by_name: payer's name at creation time (denormalized for display)
    """
    id: str = ""
    description: str = ""
    amount: float = 0.0
    paid_by: str = ""
    paid_by_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a plain dict suitable for JSON serialization.
        Keys keep the camelCase names used by stored trips.
        """
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "paidBy": self.paid_by,
            "paidByName": self.paid_by_name,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Expense":
        """
        Construct an Expense from a dict (inverse of to_dict).
        Uses defaults for missing keys so older/corrupted files are tolerated.
        """
        try:
            amount = float(d.get("amount", 0.0) or 0.0)
        except (TypeError, ValueError):
            amount = 0.0
        return Expense(
            id=str(d.get("id", "") or ""),
            description=str(d.get("description", "") or ""),
            amount=amount,
            paid_by=str(d.get("paidBy", "") or ""),
            paid_by_name=str(d.get("paidByName", "") or ""),
        )


@dataclass
class ParticipantBalance:
    """
    A participant together with the derived settlement figures.

    balance = paid - fair_share; status is "creditor" when balance >= 0
    (the participant is owed money) and "debtor" otherwise.
    """
    id: str
    name: str
    paid: float
    fair_share: float
    balance: float
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "paid": self.paid,
            "fairShare": self.fair_share,
            "balance": self.balance,
            "status": self.status,
        }


@dataclass
class Transfer:
    """A suggested payment from a debtor to a creditor."""
    from_name: str
    to_name: str
    amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.from_name, "to": self.to_name, "amount": self.amount}


@dataclass
class TripSnapshot:
    """Everything persisted for one trip."""
    participants: List[Participant] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    last_updated: int = 0  # epoch milliseconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participants": [p.to_dict() for p in self.participants],
            "expenses": [e.to_dict() for e in self.expenses],
            "lastUpdated": self.last_updated,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TripSnapshot":
        try:
            last_updated = int(d.get("lastUpdated", 0) or 0)
        except (TypeError, ValueError):
            last_updated = 0
        return TripSnapshot(
            participants=[Participant.from_dict(p) for p in d.get("participants", []) or []],
            expenses=[Expense.from_dict(e) for e in d.get("expenses", []) or []],
            last_updated=last_updated,
        )


@dataclass
class TripInfo:
    """Listing entry for a stored trip."""
    id: str
    last_updated: int
    participants: int
