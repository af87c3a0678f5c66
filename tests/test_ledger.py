import random

import pytest

from crm_panel.client.ledger import PendingEditLedger, parse_quantity
from crm_panel.exceptions import ValidationError


def assert_diff_invariant(ledger):
    differing = {
        pid for pid, value in ledger.displayed.items() if ledger.baseline.get(pid) != value
    }
    assert set(ledger.pending) == differing
    for pid, value in ledger.pending.items():
        assert ledger.displayed[pid] == value


def test_set_value_records_only_real_differences():
    ledger = PendingEditLedger({1: 10, 2: 3})

    ledger.set_value(1, 12)
    ledger.set_value(2, 3)

    assert dict(ledger.pending) == {1: 12}
    assert ledger.displayed[1] == 12
    assert ledger.has_pending()


def test_reverting_to_baseline_removes_entry():
    ledger = PendingEditLedger({5: 9})

    ledger.set_value(5, 14)
    ledger.set_value(5, 9)

    assert 5 not in ledger.pending
    assert not ledger.has_pending()
    assert ledger.displayed[5] == 9


def test_random_edit_sequences_keep_diff_invariant():
    rng = random.Random(7)
    ledger = PendingEditLedger({pid: rng.randint(0, 5) for pid in range(8)})

    for _ in range(300):
        ledger.set_value(rng.randrange(8), rng.randint(0, 5))
        assert_diff_invariant(ledger)


def test_negative_quantity_is_rejected_without_side_effects():
    ledger = PendingEditLedger({1: 4})

    with pytest.raises(ValidationError):
        ledger.set_value(1, -1)

    assert dict(ledger.displayed) == {1: 4}
    assert not ledger.has_pending()


def test_unknown_product_is_always_pending():
    ledger = PendingEditLedger({1: 4})

    ledger.set_value(99, 0)

    assert dict(ledger.pending) == {99: 0}


def test_discard_resets_pending_and_displayed_together():
    ledger = PendingEditLedger({1: 4, 2: 8})
    ledger.set_value(1, 40)
    ledger.set_value(2, 80)

    ledger.discard_all()

    assert not ledger.has_pending()
    assert dict(ledger.displayed) == {1: 4, 2: 8}


def test_changes_keep_ledger_order():
    ledger = PendingEditLedger({3: 1, 7: 1})
    ledger.set_value(3, 5)
    ledger.set_value(7, 2)

    pairs = [(c.product_id, c.cantidad) for c in ledger.changes()]

    assert pairs == [(3, 5), (7, 2)]


def test_apply_commit_merges_baseline_and_clears_ledger():
    ledger = PendingEditLedger({1: 4, 2: 8, 3: 1})
    ledger.set_value(1, 6)
    ledger.set_value(3, 0)

    ledger.apply_commit({1: 6, 3: 0})

    assert not ledger.has_pending()
    assert dict(ledger.baseline) == {1: 6, 2: 8, 3: 0}
    assert dict(ledger.displayed) == dict(ledger.baseline)


def test_apply_commit_keeps_edits_made_during_flight():
    ledger = PendingEditLedger({1: 4})
    ledger.set_value(1, 6)
    committed = {c.product_id: c.cantidad for c in ledger.changes()}
    ledger.set_value(1, 7)

    ledger.apply_commit(committed)

    assert dict(ledger.baseline) == {1: 6}
    assert dict(ledger.pending) == {1: 7}
    assert ledger.displayed[1] == 7


def test_refresh_without_pending_replaces_everything():
    ledger = PendingEditLedger({1: 4})

    ledger.refresh_baseline({1: 5, 2: 2})

    assert dict(ledger.baseline) == {1: 5, 2: 2}
    assert dict(ledger.displayed) == {1: 5, 2: 2}


def test_refresh_does_not_clobber_pending_edit():
    ledger = PendingEditLedger({5: 9, 6: 1})
    ledger.set_value(5, 12)

    ledger.refresh_baseline({5: 9, 6: 2})

    assert ledger.displayed[5] == 12
    assert ledger.pending[5] == 12
    assert ledger.displayed[6] == 2
    assert_diff_invariant(ledger)


def test_refresh_matching_pending_value_drops_entry():
    ledger = PendingEditLedger({5: 9})
    ledger.set_value(5, 12)

    ledger.refresh_baseline({5: 12})

    assert not ledger.has_pending()
    assert ledger.displayed[5] == 12


def test_views_are_read_only():
    ledger = PendingEditLedger({1: 1})

    with pytest.raises(TypeError):
        ledger.pending[1] = 3


@pytest.mark.parametrize(
    "raw, expected",
    [("7", 7), (" 12 ", 12), ("", 0), ("abc", 0), (None, 0), ("3.5", 0)],
)
def test_parse_quantity(raw, expected):
    assert parse_quantity(raw) == expected
