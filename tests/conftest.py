import pytest

from src.models import Expense, Participant
from src.storage import TripStore
from src.trip import TripLedger


@pytest.fixture
def store(tmp_path):
    """Trip store writing into a per-test temp directory."""
    return TripStore(data_dir=str(tmp_path))


@pytest.fixture
def ledger(store):
    return TripLedger("TEST", store=store)


@pytest.fixture
def three_friends():
    """Ana, Bruno and Carla."""
    return [
        Participant(id="a", name="Ana"),
        Participant(id="b", name="Bruno"),
        Participant(id="c", name="Carla"),
    ]


@pytest.fixture
def fuel_paid_by_ana():
    """Single 90.00 expense paid by Ana."""
    return [Expense(id="e1", description="Fuel", amount=90.0, paid_by="a", paid_by_name="Ana")]
