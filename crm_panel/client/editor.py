"""
Inventory editor: the pending-edit ledger driven by an explicit state machine.

    CLEAN --value_changed--> DIRTY --commit_all--> COMMITTING
    COMMITTING --commit_succeeded--> CLEAN (or DIRTY if edits arrived meanwhile)
    COMMITTING --commit_failed--> DIRTY (edits kept for a retry)

Only one batch commit may be outstanding. Inputs stay editable while it runs.
"""
import asyncio
from enum import Enum
from typing import Dict, List, Mapping, Optional

from crm_panel.client.gateway import InventoryGateway
from crm_panel.client.ledger import PendingEditLedger, parse_quantity
from crm_panel.exceptions import (
    CommitInProgressError,
    CommitTimeoutError,
    PartialBatchError,
)
from crm_panel.models.inventory import InventoryChange, InventoryListing
from crm_panel.logging_config import get_child_logger

logger = get_child_logger("client.editor")

DEFAULT_COMMIT_TIMEOUT_SECONDS = 15.0


class EditorState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    COMMITTING = "committing"


class InventoryEditor:

    def __init__(
        self,
        gateway: InventoryGateway,
        ledger: Optional[PendingEditLedger] = None,
        commit_timeout: float = DEFAULT_COMMIT_TIMEOUT_SECONDS,
    ):
        self.gateway = gateway
        self.ledger = ledger or PendingEditLedger()
        self.commit_timeout = commit_timeout
        self.error: Optional[str] = None
        self.listing: Optional[InventoryListing] = None
        self._committing = False

    @property
    def state(self) -> EditorState:
        if self._committing:
            return EditorState.COMMITTING
        if self.ledger.has_pending():
            return EditorState.DIRTY
        return EditorState.CLEAN

    @property
    def can_commit(self) -> bool:
        return self.state == EditorState.DIRTY

    # --- events ---

    def value_changed(self, product_id: int, value: int) -> None:
        self.ledger.set_value(product_id, value)

    def value_entered(self, product_id: int, text) -> int:
        """Feed raw input text; unparseable text counts as 0."""
        value = parse_quantity(text)
        self.value_changed(product_id, value)
        return value

    def discard_all(self) -> None:
        if self._committing:
            raise CommitInProgressError("Cannot discard edits while a commit is in flight.")
        self.ledger.discard_all()
        self.error = None

    def baseline_refreshed(self, fresh: Mapping[int, int]) -> None:
        self.ledger.refresh_baseline(fresh)

    def commit_succeeded(self, changes: List[InventoryChange]) -> None:
        self.ledger.apply_commit({c.product_id: c.cantidad for c in changes})
        self.error = None
        logger.info(f"Committed {len(changes)} inventory changes", extra={"count": len(changes)})

    def commit_failed(self, error: Exception, confirmed: List[InventoryChange] = ()) -> None:
        """
        Keep every unconfirmed edit pending. Writes the server confirmed
        before failing are folded into the baseline and not retried.
        """
        if confirmed:
            self.ledger.apply_commit({c.product_id: c.cantidad for c in confirmed})
        self.error = str(error)
        logger.warning(
            "Inventory commit failed",
            extra={"error": self.error, "confirmed": [c.product_id for c in confirmed]},
        )

    # --- server round trips ---

    async def commit_all(self) -> List[InventoryChange]:
        """
        Submit every pending edit as one batch.

        Returns:
            The committed changes; empty when there was nothing to commit

        Raises:
            CommitInProgressError: If another commit is outstanding
            CommitTimeoutError: If the server does not answer in time
            Exception: Whatever the gateway raised, after the edits were kept
        """
        if self._committing:
            raise CommitInProgressError("A batch commit is already in flight.")
        if not self.ledger.has_pending():
            return []

        changes = self.ledger.changes()
        self._committing = True
        self.error = None
        try:
            await asyncio.wait_for(self.gateway.upsert_batch(changes), self.commit_timeout)
        except PartialBatchError as e:
            applied = set(e.applied)
            self.commit_failed(e, [c for c in changes if c.product_id in applied])
            raise
        except asyncio.TimeoutError as e:
            error = CommitTimeoutError(
                f"Batch commit did not complete within {self.commit_timeout} seconds."
            )
            self.commit_failed(error)
            raise error from e
        except Exception as e:
            self.commit_failed(e)
            raise
        else:
            self.commit_succeeded(changes)
            return changes
        finally:
            self._committing = False

    async def save_single(self, product_id: int, value: int) -> None:
        """
        Row edit mode: write one quantity right away, outside the batch.
        """
        if self._committing:
            raise CommitInProgressError("A batch commit is already in flight.")
        change = InventoryChange(product_id=product_id, cantidad=value)
        self._committing = True
        try:
            await asyncio.wait_for(self.gateway.upsert_batch([change]), self.commit_timeout)
        except asyncio.TimeoutError as e:
            error = CommitTimeoutError(
                f"Saving product {product_id} did not complete within {self.commit_timeout} seconds."
            )
            self.error = str(error)
            raise error from e
        except Exception as e:
            self.error = str(e)
            raise
        finally:
            self._committing = False
        self.ledger.apply_commit({product_id: value})
        self.error = None

    async def refresh(self, search: str = "", color: str = "") -> Dict[int, int]:
        """Refetch the listing and feed it to the ledger as a new baseline."""
        listing = await self.gateway.fetch_inventory(search=search, color=color)
        self.listing = listing
        quantities = listing.quantities()
        self.baseline_refreshed(quantities)
        return quantities
