import pytest

from src.models import Transfer
from src.storage import TripDataError
from src.trip import TripLedger, parse_amount


def test_new_trip_is_saved_on_load(store):
    ledger = TripLedger(store=store)
    assert len(ledger.trip_id) == 4
    assert ledger.participants == []
    assert ledger.expenses == []
    assert store.load_snapshot(ledger.trip_id) is not None
    assert ledger.last_updated > 0


def test_add_participant(ledger):
    initial_count = len(ledger.participants)
    p = ledger.add_participant("  Alice ")
    assert len(ledger.participants) == initial_count + 1
    assert p.name == "Alice"
    assert p.id


def test_add_participant_rejects_blank_name(ledger):
    with pytest.raises(ValueError):
        ledger.add_participant("   ")
    assert ledger.participants == []


def test_add_expense(ledger):
    alice = ledger.add_participant("Alice")
    exp = ledger.add_expense("Dinner", "100.50", alice.id)
    assert ledger.expenses[-1] is exp
    assert exp.amount == 100.5
    assert exp.paid_by == alice.id
    assert exp.paid_by_name == "Alice"


@pytest.mark.parametrize("description, amount", [
    ("", 10.0),
    ("Dinner", 0),
    ("Dinner", -5),
    ("Dinner", "abc"),
    ("Dinner", ""),
])
def test_add_expense_rejects_invalid_input(ledger, description, amount):
    alice = ledger.add_participant("Alice")
    with pytest.raises(ValueError):
        ledger.add_expense(description, amount, alice.id)
    assert ledger.expenses == []


def test_add_expense_rejects_unknown_payer(ledger):
    ledger.add_participant("Alice")
    with pytest.raises(ValueError):
        ledger.add_expense("Dinner", 10.0, "nobody")
    with pytest.raises(ValueError):
        ledger.add_expense("Dinner", 10.0, "")


def test_parse_amount_accepts_decimal_comma():
    assert parse_amount("12,50") == 12.5
    assert parse_amount(3) == 3.0
    with pytest.raises(ValueError):
        parse_amount(float("nan"))
    with pytest.raises(ValueError):
        parse_amount(float("inf"))


def test_balances_and_plan(ledger):
    alice = ledger.add_participant("Alice")
    bob = ledger.add_participant("Bob")
    ledger.add_expense("Dinner", 100.0, alice.id)
    ledger.add_expense("Taxi", 50.0, bob.id)
    balances = {b.name: b.balance for b in ledger.balances()}
    assert balances == {"Alice": 25.0, "Bob": -25.0}
    assert ledger.transfer_plan() == [Transfer(from_name="Bob", to_name="Alice", amount=25.0)]


def test_summary(ledger):
    alice = ledger.add_participant("Alice")
    ledger.add_participant("Bob")
    ledger.add_participant("Carol")
    ledger.add_expense("Bait", 90.0, alice.id)
    summary = ledger.summary()
    assert summary.total == 90.0
    assert summary.per_person == 30.0
    assert [t.from_name for t in summary.transfers] == ["Bob", "Carol"]


def test_remove_participant_cascades_expenses(ledger):
    alice = ledger.add_participant("Alice")
    bob = ledger.add_participant("Bob")
    ledger.add_expense("Dinner", 100.0, alice.id)
    ledger.add_expense("Fuel", 40.0, alice.id)
    kept = ledger.add_expense("Taxi", 50.0, bob.id)

    assert ledger.remove_participant(alice.id) is True
    assert [p.name for p in ledger.participants] == ["Bob"]
    assert ledger.expenses == [kept]
    balances = ledger.balances()
    assert len(balances) == 1
    assert balances[0].paid == 50.0
    assert balances[0].balance == 0.0
    assert ledger.transfer_plan() == []


def test_remove_unknown_participant(ledger):
    assert ledger.remove_participant("missing") is False


def test_remove_expense(ledger):
    alice = ledger.add_participant("Alice")
    exp = ledger.add_expense("Dinner", 10.0, alice.id)
    assert ledger.remove_expense(exp.id) is True
    assert ledger.expenses == []
    assert ledger.remove_expense(exp.id) is False


def test_changes_are_persisted(store):
    ledger = TripLedger("abcd", store=store)
    alice = ledger.add_participant("Alice")
    ledger.add_expense("Dinner", 100.0, alice.id)

    reloaded = TripLedger("ABCD", store=store)
    assert [p.name for p in reloaded.participants] == ["Alice"]
    assert len(reloaded.expenses) == 1
    assert reloaded.expenses[0].amount == 100.0
    assert reloaded.expenses[0].paid_by == alice.id


def test_refresh_picks_up_other_client_changes(store):
    mine = TripLedger("SYNC", store=store)
    theirs = TripLedger("SYNC", store=store)
    theirs.add_participant("Bob")
    assert mine.participants == []
    assert mine.refresh() is True
    assert [p.name for p in mine.participants] == ["Bob"]


def test_new_trip(ledger, store):
    ledger.add_participant("Alice")
    old_id = ledger.trip_id
    new_id = ledger.new_trip()
    assert ledger.trip_id == new_id
    assert ledger.participants == []
    assert store.load_snapshot(new_id) is not None
    assert len(store.load_snapshot(old_id).participants) == 1


def test_unreadable_trip_is_not_overwritten(store, tmp_path):
    path = tmp_path / "trip-KEEP.json"
    path.write_text('{"participants": [{"id": "a", "name": "Ana"}', encoding="utf-8")
    with pytest.raises(TripDataError):
        TripLedger("KEEP", store=store)
    assert "Ana" in path.read_text(encoding="utf-8")


def test_refresh_keeps_damaged_file(store, tmp_path):
    ledger = TripLedger("KEEP", store=store)
    ledger.add_participant("Ana")
    path = tmp_path / "trip-KEEP.json"
    damaged = path.read_text(encoding="utf-8")[:-5]
    path.write_text(damaged, encoding="utf-8")

    with pytest.raises(TripDataError):
        ledger.refresh()
    assert path.read_text(encoding="utf-8") == damaged
    assert [p.name for p in ledger.participants] == ["Ana"]


def test_invalid_trip_id_is_rejected(store, tmp_path):
    with pytest.raises(ValueError):
        TripLedger("../outside", store=store)
    assert list(tmp_path.iterdir()) == []
