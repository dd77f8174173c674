"""Private note delivery (bettor and resolver inboxes)."""

from __future__ import annotations

from collections import defaultdict
from typing import DefaultDict, List, Protocol, Union

from .types.core import Address, BetRecord, RevealRecord

Note = Union[BetRecord, RevealRecord]


class NoteDelivery(Protocol):
    def deliver(self, recipient: Address, record: Note) -> None: ...


class NoteInbox:
    """Per-recipient in-memory mailbox."""

    def __init__(self) -> None:
        self._boxes: DefaultDict[bytes, List[Note]] = defaultdict(list)

    def deliver(self, recipient: Address, record: Note) -> None:
        self._boxes[bytes(recipient)].append(record)

    def notes_for(self, recipient: Address) -> List[Note]:
        return list(self._boxes.get(bytes(recipient), ()))

    def bets_for(self, recipient: Address, round_id: int) -> List[BetRecord]:
        return [n for n in self.notes_for(recipient) if isinstance(n, BetRecord) and int(n.round_id) == int(round_id)]


__all__ = ["Note", "NoteDelivery", "NoteInbox"]
