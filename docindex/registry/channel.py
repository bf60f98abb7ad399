"""Delivery channel — hands fragments to the registry, or holds them until it exists.

Fragments arrive whenever their producer gets around to it: before the
registry is set up, while it is draining, or long after. The channel owns the
one entry-point slot and the pending buffer; a delivery either calls the
installed entry point or appends to the buffer, never both.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from docindex.registry.models import RegistryStateError

logger = logging.getLogger(__name__)

EntryPoint = Callable[[Any], Any]


class DeliveryChannel:
    """Single-slot delivery channel with a pending buffer."""

    def __init__(self) -> None:
        self._entry_point: EntryPoint | None = None
        self._pending: list[Any] = []

    @property
    def is_live(self) -> bool:
        return self._entry_point is not None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def deliver(self, fragment: Any) -> None:
        """Merge ``fragment`` live if an entry point is installed, else buffer it.

        The payload is not inspected here; validation happens at merge time.
        """
        if self._entry_point is not None:
            self._entry_point(fragment)
            return
        self._pending.append(fragment)
        logger.debug("Buffered fragment (%d pending)", len(self._pending))

    def install(self, entry_point: EntryPoint) -> None:
        """Install the merge entry point. Only one may ever be installed."""
        if self._entry_point is not None:
            raise RegistryStateError("Delivery channel already has an entry point installed")
        self._entry_point = entry_point

    def take_pending(self) -> list[Any]:
        """Return buffered fragments in arrival order and clear the buffer."""
        pending, self._pending = self._pending, []
        return pending
