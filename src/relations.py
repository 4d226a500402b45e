"""Derived family relations for a single member."""

from collections import deque

from generations import GenerationCalculator
from graph import FamilyGraph
from models import Member, RelationSet


class RelationEngine:
    """Answers relation queries against one FamilyGraph build."""

    def __init__(self, graph: FamilyGraph, generations: GenerationCalculator | None = None):
        self.graph = graph
        self.generations = generations or GenerationCalculator(graph)

    def _members(self, ids) -> list[Member]:
        return [self.graph.member(i) for i in ids]

    def parents(self, member_id: str) -> list[Member]:
        return self._members(self.graph.parents_of(member_id))

    def siblings(self, member_id: str) -> list[Member]:
        """
        Members sharing at least one parent reference with this one.

        One shared parent is enough, so half-siblings are included.
        """
        member = self.graph.member(member_id)
        shared: set[str] = set()
        for ref in member.parent_refs():
            shared.update(self.graph.members_sharing_parent(ref))
        shared.discard(member_id)
        return self._members(n for n in self.graph.order if n in shared)

    def children(self, member_id: str) -> list[Member]:
        return self._members(self.graph.children_of(member_id))

    def descendants(self, member_id: str) -> dict[int, list[Member]]:
        """
        All descendants grouped by generation (children are generation 1).

        Each descendant is listed once, at the nearest generation it is reached.
        """
        self.graph.member(member_id)
        by_generation: dict[int, list[Member]] = {}
        children = self.graph.children_of(member_id)
        visited = {member_id, *children}
        queue = deque((child, 1) for child in children)

        while queue:
            node, generation = queue.popleft()
            by_generation.setdefault(generation, []).append(self.graph.member(node))
            for child in self.graph.children_of(node):
                if child not in visited:
                    visited.add(child)
                    queue.append((child, generation + 1))

        return by_generation

    def degree(self, member_id: str) -> int:
        return max(self.descendants(member_id), default=0)

    def co_parents(self, member_id: str) -> list[Member]:
        """Other valid parents of this member's children."""
        found: list[str] = []
        for child in self.graph.children_of(member_id):
            for parent in self.graph.parents_of(child):
                if parent != member_id and parent not in found:
                    found.append(parent)
        return self._members(found)

    def cousins(self, member_id: str) -> list[Member]:
        """
        Same-generation members sharing a grandparent but no parent.

        Generation equality is only a proxy here, so treat the result as a hint.
        """
        depth = self.generations.depth_of(member_id)
        own_parents = set(self.graph.parents_of(member_id))
        grandparents = {gp for p in own_parents for gp in self.graph.parents_of(p)}
        if not grandparents:
            return []

        sibling_ids = {m.id for m in self.siblings(member_id)}
        found = []
        for other in self.graph.order:
            if other == member_id or other in sibling_ids:
                continue
            if self.generations.depth_of(other) != depth:
                continue
            other_parents = set(self.graph.parents_of(other))
            if other_parents & own_parents:
                continue
            if any(set(self.graph.parents_of(p)) & grandparents for p in other_parents):
                found.append(other)
        return self._members(found)

    def get_relations(self, member_id: str) -> RelationSet:
        member = self.graph.member(member_id)
        descendants = self.descendants(member_id)
        return RelationSet(
            member=member,
            parents=self.parents(member_id),
            siblings=self.siblings(member_id),
            children=self.children(member_id),
            descendants_by_generation=descendants,
            degree=max(descendants, default=0),
            co_parents=self.co_parents(member_id),
            cousins=self.cousins(member_id),
        )
