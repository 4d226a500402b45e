"""In-memory member collection for the currently open tree."""

from dataclasses import replace
import logging
from typing import Callable, Iterable, Iterator

from models import Member, now_iso

logger = logging.getLogger(__name__)

Listener = Callable[[tuple[Member, ...]], None]


class MemberRepository:
    """
    Ordered store of one tree's members.

    Edits are whole-record operations (add, update, remove). Every change
    notifies subscribers with a fresh read-only snapshot.
    """

    def __init__(self, tree_id: str | None = None, members: Iterable[Member] = ()):
        self.tree_id = tree_id
        self._members: dict[str, Member] = {}
        self._listeners: list[Listener] = []
        for member in members:
            self._insert(member)

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[Member]:
        return iter(self.snapshot())

    def __contains__(self, member_id: object) -> bool:
        return member_id in self._members

    def _check_tree(self, member: Member) -> None:
        if self.tree_id is not None and member.tree_id not in (None, self.tree_id):
            raise ValueError(
                f"Member {member.id} belongs to tree {member.tree_id}, not {self.tree_id}"
            )

    def _insert(self, member: Member) -> None:
        self._check_tree(member)
        if member.id in self._members:
            raise ValueError(f"Member ID {member.id} already exists")
        if self.tree_id is not None and member.tree_id is None:
            member = replace(member, tree_id=self.tree_id)
        self._members[member.id] = member

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> tuple[Member, ...]:
        return tuple(self._members.values())

    def get(self, member_id: str) -> Member:
        if member_id not in self._members:
            raise ValueError(f"Member ID {member_id} not found")
        return self._members[member_id]

    def add(self, member: Member) -> Member:
        self._insert(member)
        logger.debug("Added member %s", member.id)
        self._notify()
        return self._members[member.id]

    def update(self, member: Member) -> Member:
        if member.id not in self._members:
            raise ValueError(f"Member ID {member.id} not found")
        self._check_tree(member)
        previous = self._members[member.id]
        updated = replace(
            member,
            tree_id=member.tree_id or previous.tree_id,
            created_at=member.created_at or previous.created_at,
            updated_at=now_iso(),
        )
        # Replacing the value keeps the member's position in the ordering
        self._members[member.id] = updated
        logger.debug("Updated member %s", member.id)
        self._notify()
        return updated

    def remove(self, member_id: str) -> Member:
        if member_id not in self._members:
            raise ValueError(f"Member ID {member_id} not found")
        removed = self._members.pop(member_id)
        logger.debug("Removed member %s", member_id)
        self._notify()
        return removed

    def load(self, members: Iterable[Member]) -> None:
        """Replace the whole collection, notifying once."""
        previous = self._members
        self._members = {}
        try:
            for member in members:
                self._insert(member)
        except ValueError:
            self._members = previous
            raise
        self._notify()
