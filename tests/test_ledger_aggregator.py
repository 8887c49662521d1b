from datetime import date
from decimal import Decimal

import pytest

from battery_ledger.core.messages import MessageError
from battery_ledger.services.ledger_service import (
    TransactionRecord, aggregate_transactions, is_deferred, normalize_payment_method
)

DEFERRED = {"check", "credit", "اجل"}


def _record(quantity, total, day, method):
    return TransactionRecord(
        quantity=Decimal(quantity), total=Decimal(total), date=day, payment_method=method
    )


def test_empty_history_yields_zeros():
    """No transactions: every figure is zero and there is no last date."""
    stats = aggregate_transactions([], DEFERRED)

    assert stats.total_quantity == 0
    assert stats.total_amount == 0
    assert stats.average_price == 0
    assert stats.balance == 0
    assert stats.last_date is None


def test_only_deferred_payments_accrue_to_balance():
    """A cash purchase of 200 and a cheque purchase of 150 leave a balance of 150."""
    records = [
        _record("20", "200", date(2024, 5, 1), "cash"),
        _record("10", "150", date(2024, 5, 3), "check"),
    ]

    stats = aggregate_transactions(records, DEFERRED)

    assert stats.total_quantity == Decimal("30")
    assert stats.total_amount == Decimal("350")
    assert stats.balance == Decimal("150")
    assert stats.last_date == date(2024, 5, 3)
    assert stats.average_price == Decimal("350") / Decimal("30")


def test_arabic_and_credit_spellings_are_deferred():
    """Legacy 'credit' and Arabic 'اجل' rows count toward the balance; card and transfer do not."""
    records = [
        _record("1", "100", date(2024, 1, 1), "اجل"),
        _record("1", "50", date(2024, 1, 2), "credit"),
        _record("1", "70", date(2024, 1, 3), "card"),
        _record("1", "30", date(2024, 1, 4), "bank_transfer"),
    ]

    stats = aggregate_transactions(records, DEFERRED)

    assert stats.balance == Decimal("150")
    assert stats.total_amount == Decimal("250")


def test_result_does_not_depend_on_order():
    """Reversing the history gives the same figures, including the latest date."""
    records = [
        _record("5", "60", date(2024, 3, 9), "check"),
        _record("2", "30", date(2024, 2, 1), "cash"),
        _record("8", "90", date(2024, 4, 2), "cash"),
    ]

    assert aggregate_transactions(records, DEFERRED) == aggregate_transactions(list(reversed(records)), DEFERRED)
    assert aggregate_transactions(records, DEFERRED).last_date == date(2024, 4, 2)


def test_aggregation_is_idempotent():
    """Running the fold twice over the same rows gives identical results."""
    records = [_record("3", "33", date(2024, 6, 1), "check")]

    first = aggregate_transactions(records, DEFERRED)
    second = aggregate_transactions(records, DEFERRED)

    assert first == second


def test_average_price_is_zero_without_quantity():
    """A zero-quantity history never divides by zero."""
    records = [_record("0", "40", date(2024, 6, 1), "cash")]

    stats = aggregate_transactions(records, DEFERRED)

    assert stats.average_price == 0
    assert stats.total_amount == Decimal("40")


def test_is_deferred_ignores_case_and_whitespace():
    """Payment methods are matched after trimming and lower-casing."""
    assert is_deferred(" Check ", DEFERRED)
    assert not is_deferred("cash", DEFERRED)
    assert not is_deferred(None, DEFERRED)


def test_transfer_is_an_alias_of_bank_transfer():
    """The short 'transfer' spelling is stored as bank_transfer."""
    assert normalize_payment_method("transfer") == "bank_transfer"
    assert normalize_payment_method(None) == "cash"


def test_unknown_payment_method_is_rejected():
    """Anything outside the known methods is a validation error."""
    with pytest.raises(MessageError) as exc:
        normalize_payment_method("barter")
    assert exc.value.key == "invalid_payment_method"
