"""
storage.py - trip snapshot persistence

One JSON file per trip (data/trip-<ID>.json) holding the participants, the
expenses and a `lastUpdated` timestamp (epoch ms) that sync/polling callers
compare against. Writes are atomic: temp file in the same directory, then move.
"""

from typing import List, Optional, Sequence
import json
import logging
import os
import random
import re
import shutil
import string
import tempfile
import time

from src.models import Expense, Participant, TripInfo, TripSnapshot

# directory holding the trip files (relative to src/), overridable via env
_default_data_dir = os.path.join(os.path.dirname(__file__), "..", "data")
DATA_DIR_ENV = "TRIP_SPLITTER_DATA_DIR"

TRIP_FILE_PREFIX = "trip-"
TRIP_ID_LENGTH = 4
TRIP_ID_CHARS = string.ascii_uppercase + string.digits
TRIP_ID_PATTERN = re.compile(r"[A-Z0-9]+")

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def generate_trip_id() -> str:
    """Short random id, easy to share (e.g. "K7Q2")."""
    return "".join(random.choice(TRIP_ID_CHARS) for _ in range(TRIP_ID_LENGTH))


def normalize_trip_id(trip_id: Optional[str]) -> str:
    """Strip whitespace and an accidental file prefix; ids are upper-case."""
    tid = (trip_id or "").strip()
    if tid.lower().startswith(TRIP_FILE_PREFIX):
        tid = tid[len(TRIP_FILE_PREFIX):]
    return tid.upper()


class TripDataError(Exception):
    """A stored trip exists but its file cannot be read or parsed."""


def _now_ms() -> int:
    return int(time.time() * 1000)


class TripStore:
    """
    Local JSON backend for trip snapshots.

    load_snapshot / save_snapshot are the only operations the ledger needs;
    list_trips / delete_trip back the trip finder.
    """

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = os.path.abspath(data_dir or os.getenv(DATA_DIR_ENV) or _default_data_dir)

    def path_for(self, trip_id: str) -> str:
        """File path of a trip; raises ValueError unless the id is A-Z0-9 only."""
        tid = normalize_trip_id(trip_id)
        if not TRIP_ID_PATTERN.fullmatch(tid):
            raise ValueError(f"invalid trip id: {trip_id!r}")
        return os.path.join(self.data_dir, f"{TRIP_FILE_PREFIX}{tid}.json")

    def load_snapshot(self, trip_id: str) -> Optional[TripSnapshot]:
        """
        Return the stored snapshot, or None when the trip does not exist.
        Raises TripDataError when the file exists but cannot be read or parsed.
        """
        tid = normalize_trip_id(trip_id)
        if not tid:
            logger.warning("load_snapshot called with an empty trip id")
            return None
        path = self.path_for(tid)
        if not os.path.exists(path):
            logger.info("Trip %s not found in %s", tid, self.data_dir)
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.exception("Failed to read trip file %s", path)
            raise TripDataError(f"trip {tid} could not be read from {path}") from exc
        if not isinstance(data, dict):
            logger.warning("Trip file %s does not hold an object", path)
            raise TripDataError(f"trip {tid} in {path} does not hold an object")
        snapshot = TripSnapshot.from_dict(data)
        logger.info(
            "Loaded trip %s (participants=%d, expenses=%d)",
            tid, len(snapshot.participants), len(snapshot.expenses),
        )
        return snapshot

    def save_snapshot(
        self,
        trip_id: str,
        participants: Sequence[Participant],
        expenses: Sequence[Expense],
    ) -> TripSnapshot:
        """
        Persist the trip atomically and stamp lastUpdated.
        Returns the snapshot as written.
        """
        tid = normalize_trip_id(trip_id)
        if not tid:
            raise ValueError("a trip id is required to save")

        snapshot = TripSnapshot(
            participants=list(participants),
            expenses=list(expenses),
            last_updated=_now_ms(),
        )
        target = self.path_for(tid)
        os.makedirs(self.data_dir, exist_ok=True)
        logger.info(
            "Saving trip %s to %s (participants=%d, expenses=%d)",
            tid, target, len(snapshot.participants), len(snapshot.expenses),
        )
        fd, tmp_path = tempfile.mkstemp(prefix="tmp_trip_", dir=self.data_dir, text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            shutil.move(tmp_path, target)
        except Exception:
            logger.exception("Failed to save trip %s", tid)
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return snapshot

    def delete_trip(self, trip_id: str) -> bool:
        """Remove a stored trip. Returns True if a file was deleted."""
        tid = normalize_trip_id(trip_id)
        if not tid:
            logger.warning("delete_trip called with an empty trip id")
            return False
        path = self.path_for(tid)
        if not os.path.exists(path):
            logger.info("Trip %s not found, nothing to delete", tid)
            return False
        os.remove(path)
        logger.info("Deleted trip %s", tid)
        return True

    def list_trips(self) -> List[TripInfo]:
        """Stored trips, most recently updated first. Unreadable files are skipped."""
        if not os.path.isdir(self.data_dir):
            return []
        trips: List[TripInfo] = []
        for name in os.listdir(self.data_dir):
            if not (name.startswith(TRIP_FILE_PREFIX) and name.endswith(".json")):
                continue
            tid = name[len(TRIP_FILE_PREFIX):-len(".json")]
            if not TRIP_ID_PATTERN.fullmatch(tid):
                continue
            try:
                snapshot = self.load_snapshot(tid)
            except TripDataError:
                continue
            if snapshot is None:
                continue
            trips.append(
                TripInfo(id=tid, last_updated=snapshot.last_updated, participants=len(snapshot.participants))
            )
        trips.sort(key=lambda t: t.last_updated, reverse=True)
        return trips
