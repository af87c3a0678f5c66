"""
Pending-edit ledger for the inventory editor.

Three maps are kept per product id:

* ``baseline``: quantities last confirmed by the server
* ``pending``: proposed quantities that differ from the baseline
* ``displayed``: what the inputs show; the baseline, overridden by edits

A product is in ``pending`` exactly when its displayed value differs from
its baseline. Reverting an input to the baseline removes the entry.
"""
from types import MappingProxyType
from typing import Dict, List, Mapping

from crm_panel.exceptions import ValidationError
from crm_panel.models.inventory import InventoryChange


def parse_quantity(text) -> int:
    """
    Coerce raw input the way the number inputs do: anything that does not
    parse as an integer counts as 0.
    """
    try:
        return int(str(text).strip())
    except (TypeError, ValueError):
        return 0


class PendingEditLedger:

    def __init__(self, baseline: Mapping[int, int] = None):
        self._baseline: Dict[int, int] = dict(baseline or {})
        self._displayed: Dict[int, int] = dict(self._baseline)
        self._pending: Dict[int, int] = {}

    @property
    def baseline(self) -> Mapping[int, int]:
        return MappingProxyType(self._baseline)

    @property
    def pending(self) -> Mapping[int, int]:
        return MappingProxyType(self._pending)

    @property
    def displayed(self) -> Mapping[int, int]:
        return MappingProxyType(self._displayed)

    def has_pending(self) -> bool:
        return bool(self._pending)

    def set_value(self, product_id: int, value: int) -> None:
        if value < 0:
            raise ValidationError("Quantity must be zero or greater.")
        self._displayed[product_id] = value
        if product_id in self._baseline and self._baseline[product_id] == value:
            self._pending.pop(product_id, None)
        else:
            self._pending[product_id] = value

    def changes(self) -> List[InventoryChange]:
        """Pending edits as batch pairs, in ledger order."""
        return [
            InventoryChange(product_id=product_id, cantidad=cantidad)
            for product_id, cantidad in self._pending.items()
        ]

    def discard_all(self) -> None:
        self._pending.clear()
        self._displayed = dict(self._baseline)

    def apply_commit(self, committed: Mapping[int, int]) -> None:
        """
        Fold confirmed writes into the baseline.

        A pending entry is only dropped if it still holds the committed
        value; an id edited again while the commit was in flight stays pending.
        """
        self._baseline.update(committed)
        for product_id, value in committed.items():
            if self._pending.get(product_id) == value:
                del self._pending[product_id]
        self._reseed_displayed()

    def refresh_baseline(self, fresh: Mapping[int, int]) -> None:
        """
        Accept a new server baseline without clobbering unsaved edits.
        Pending entries that now match the server are dropped.
        """
        self._baseline = dict(fresh)
        for product_id in list(self._pending):
            if self._baseline.get(product_id) == self._pending[product_id]:
                del self._pending[product_id]
        self._reseed_displayed()

    def _reseed_displayed(self) -> None:
        displayed = dict(self._baseline)
        displayed.update(self._pending)
        self._displayed = displayed
