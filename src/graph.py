"""NetworkX graph building for a flat list of family members."""

from dataclasses import dataclass
import logging

import networkx as nx

from models import Member, NO_PARENT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DroppedReference:
    member_id: str
    parent_id: str
    reason: str  # dangling, self


class FamilyGraph:
    """
    Read-only parent -> child view over one tree's members.

    Nodes are member ids carrying the Member under the ``member`` attribute.
    Every edge points from a parent to a child and both endpoints exist.
    """

    def __init__(self, G: nx.DiGraph, order: list[str], dropped: list[DroppedReference]):
        self.G = G
        self.order = order
        self.dropped = dropped

        # Raw parent reference -> member ids, dangling references included
        self._by_parent_ref: dict[str, list[str]] = {}
        for member_id in order:
            for ref in self.member(member_id).parent_refs():
                self._by_parent_ref.setdefault(ref, []).append(member_id)

    def __contains__(self, member_id: object) -> bool:
        return member_id in self.G

    def __len__(self) -> int:
        return len(self.order)

    def member(self, member_id: str) -> Member:
        if member_id not in self.G:
            raise ValueError(f"Member ID {member_id} not found in graph")
        return self.G.nodes[member_id]["member"]

    def members(self) -> list[Member]:
        return [self.G.nodes[n]["member"] for n in self.order]

    def children_of(self, member_id: str) -> list[str]:
        if member_id not in self.G:
            raise ValueError(f"Member ID {member_id} not found in graph")
        return list(self.G.successors(member_id))

    def parents_of(self, member_id: str) -> list[str]:
        """Valid parent ids in parent_id1, parent_id2 order."""
        member = self.member(member_id)
        return [ref for ref in member.parent_refs() if self.G.has_edge(ref, member_id)]

    def members_sharing_parent(self, parent_ref: str) -> list[str]:
        return list(self._by_parent_ref.get(parent_ref, []))

    def roots(self) -> list[str]:
        return [n for n in self.order if self.G.in_degree(n) == 0]

    def edges(self) -> list[tuple[str, str]]:
        return sorted(self.G.edges())

    def links(self) -> list[tuple[str, str]]:
        """(parent, child) pairs in member order, one per valid parent reference."""
        return [(parent, child) for child in self.order for parent in self.parents_of(child)]


def build_graph(members: list[Member]) -> FamilyGraph:
    """Build the parent -> child graph, dropping references that cannot be resolved."""
    G = nx.DiGraph()
    order: list[str] = []
    dropped: list[DroppedReference] = []

    for member in members:
        if member.id in G:
            logger.warning("Duplicate member id %s, keeping the first record", member.id)
            continue
        G.add_node(member.id, member=member)
        order.append(member.id)

    for member_id in order:
        member = G.nodes[member_id]["member"]
        for ref in (member.parent_id1, member.parent_id2):
            if not ref or ref == NO_PARENT:
                continue
            if ref == member_id:
                logger.warning("Member %s lists itself as a parent, ignoring", member_id)
                dropped.append(DroppedReference(member_id, ref, "self"))
                continue
            if ref not in G:
                logger.warning("Member %s references missing parent %s, ignoring", member_id, ref)
                dropped.append(DroppedReference(member_id, ref, "dangling"))
                continue
            G.add_edge(ref, member_id)

    logger.debug("Built graph with %d members and %d edges", G.number_of_nodes(), G.number_of_edges())
    return FamilyGraph(G, order, dropped)
