"""Bookkeeping for QoS 1 publishes that are still waiting for a PUBACK."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from shadowdemo.config import MAX_OUTGOING_PUBLISHES

logger = logging.getLogger(__name__)

PACKET_ID_INVALID = 0
QOS1 = 1


class StoreFullError(Exception):
    """No free slot is left for another outgoing publish."""


@dataclass
class PendingPublish:
    """A publish sent to the broker and not yet acknowledged."""

    packet_id: int
    topic: str
    payload: bytes
    qos: int = QOS1
    dup: bool = False


def _check_packet_id(packet_id: int) -> None:
    if packet_id == PACKET_ID_INVALID:
        raise ValueError("packet identifier 0 is invalid")
    if not 0 < packet_id < 65536:
        raise ValueError(f"packet identifier out of range: {packet_id}")


class OutgoingPublishStore:
    """A fixed number of slots holding unacknowledged publishes.

    A new publish takes the first free slot, so a slot freed by an
    acknowledgement is reused before later ones; resends follow slot order.
    """

    def __init__(self, capacity: int = MAX_OUTGOING_PUBLISHES) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._slots: list[PendingPublish | None] = [None] * capacity

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def add(self, topic: str, payload: bytes | str, packet_id: int) -> PendingPublish:
        """Store a publish in the first free slot and return it."""
        _check_packet_id(packet_id)
        if any(entry.packet_id == packet_id for entry in self._occupied()):
            raise ValueError(f"packet identifier {packet_id} is already pending")
        data = payload.encode() if isinstance(payload, str) else bytes(payload)
        try:
            index = self._slots.index(None)
        except ValueError:
            raise StoreFullError("Unable to find a free spot for outgoing PUBLISH message.") from None
        entry = PendingPublish(packet_id=packet_id, topic=topic, payload=data)
        self._slots[index] = entry
        return entry

    def remove(self, packet_id: int) -> PendingPublish | None:
        """Drop the publish with this packet identifier; return it, or None if absent."""
        _check_packet_id(packet_id)
        for index, entry in enumerate(self._slots):
            if entry is not None and entry.packet_id == packet_id:
                self._slots[index] = None
                logger.info("Cleaned up outgoing publish packet with packet id %u.", packet_id)
                return entry
        return None

    def clear(self) -> None:
        """Forget every pending publish."""
        self._slots = [None] * len(self._slots)

    def pending(self) -> list[PendingPublish]:
        """The pending publishes in slot order."""
        return list(self._occupied())

    def mark_duplicates(self) -> list[PendingPublish]:
        """Flag every pending publish as a duplicate for resending; return them."""
        entries = self.pending()
        for entry in entries:
            entry.dup = True
        return entries

    def __len__(self) -> int:
        return sum(1 for _ in self._occupied())

    def _occupied(self) -> Iterator[PendingPublish]:
        return (entry for entry in self._slots if entry is not None)