"""
Unit tests for the credit ledger.
"""
import pytest

from app.core.exceptions import ConcurrentUpdateError, InsufficientCreditsError, NotFoundError
from app.db.models.credit_ledger import CreditLedger
from app.services import ledger_service


def test_balance_is_zero_without_entries(db, make_user):
    user = make_user("empty@example.com")
    assert ledger_service.get_credit_balance(db, user.id) == 0


def test_balance_follows_latest_entry(db, make_user):
    user = make_user("ledger@example.com")

    ledger_service.append_entry(db, user.id, 3, "featured", ledger_service.REASON_PURCHASE)
    ledger_service.append_entry(db, user.id, -1, "featured", ledger_service.REASON_FEATURE_UPGRADE)
    ledger_service.append_entry(db, user.id, 2, "featured", ledger_service.REASON_PURCHASE)
    db.commit()

    entries = db.query(CreditLedger).filter(CreditLedger.user_id == user.id).order_by(CreditLedger.sequence).all()
    assert [e.sequence for e in entries] == [1, 2, 3]
    assert [e.balance for e in entries] == [3, 2, 4]
    assert ledger_service.get_credit_balance(db, user.id) == entries[-1].balance == 4


def test_balances_are_per_user(db, make_user):
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")

    ledger_service.append_entry(db, alice.id, 5, "featured", ledger_service.REASON_PURCHASE)
    ledger_service.append_entry(db, bob.id, 1, "featured", ledger_service.REASON_PURCHASE)
    db.commit()

    assert ledger_service.get_credit_balance(db, alice.id) == 5
    assert ledger_service.get_credit_balance(db, bob.id) == 1


def test_debit_below_zero_is_refused(db, make_user):
    user = make_user("broke@example.com")
    ledger_service.append_entry(db, user.id, 1, "featured", ledger_service.REASON_PURCHASE)
    db.commit()

    with pytest.raises(InsufficientCreditsError):
        ledger_service.append_entry(db, user.id, -2, "featured", ledger_service.REASON_FEATURE_UPGRADE)
    db.rollback()

    assert ledger_service.get_credit_balance(db, user.id) == 1
    assert db.query(CreditLedger).filter(CreditLedger.user_id == user.id).count() == 1


def test_unknown_user(db):
    with pytest.raises(NotFoundError):
        ledger_service.append_entry(db, 9999, 1, "featured", ledger_service.REASON_PURCHASE)


def test_stale_read_cannot_commit_second_row(db, make_user, monkeypatch):
    """A writer that read an old latest row collides on (user_id, sequence)."""
    user = make_user("racer@example.com")
    first = ledger_service.append_entry(db, user.id, 1, "featured", ledger_service.REASON_PURCHASE)
    ledger_service.append_entry(db, user.id, 1, "featured", ledger_service.REASON_PURCHASE)
    db.commit()
    stale = db.query(CreditLedger).filter(CreditLedger.id == first.id).one()

    monkeypatch.setattr(ledger_service, "_latest_entry", lambda session, user_id: stale)
    with pytest.raises(ConcurrentUpdateError):
        ledger_service.append_entry(db, user.id, -1, "featured", ledger_service.REASON_FEATURE_UPGRADE)
    db.rollback()
    monkeypatch.undo()

    assert ledger_service.get_credit_balance(db, user.id) == 2


def test_list_entries_newest_first(db, make_user):
    user = make_user("history@example.com")
    for _ in range(3):
        ledger_service.append_entry(db, user.id, 1, "featured", ledger_service.REASON_PURCHASE)
    db.commit()

    entries = ledger_service.list_entries(db, user.id, limit=2)
    assert [e.sequence for e in entries] == [3, 2]
