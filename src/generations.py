"""Generation (depth) numbers relative to root ancestors."""

import logging

from graph import FamilyGraph

logger = logging.getLogger(__name__)


class GenerationCalculator:
    """
    Depth of every member in a FamilyGraph, computed once per graph.

    A root has depth 0; anyone else sits one level below their deepest valid
    parent. Parent cycles are cut at the edge that closes them: that edge
    counts as depth -1, so the walk always terminates.
    """

    def __init__(self, graph: FamilyGraph):
        self.graph = graph
        self.cycle_edges: list[tuple[str, str]] = []
        self._depths: dict[str, int] = {}
        for member_id in graph.order:
            if member_id not in self._depths:
                self._walk(member_id)

    def _walk(self, start: str) -> None:
        # Iterative DFS towards the roots so long chains don't hit the recursion limit
        stack = [(start, iter(self.graph.parents_of(start)))]
        on_path = {start}
        best = {start: -1}

        while stack:
            node, parents = stack[-1]
            descended = False
            for parent in parents:
                if parent in self._depths:
                    best[node] = max(best[node], self._depths[parent])
                elif parent in on_path:
                    logger.warning(
                        "Cycle in parent chain: %s -> %s, ignoring edge for depth", parent, node
                    )
                    self.cycle_edges.append((parent, node))
                else:
                    stack.append((parent, iter(self.graph.parents_of(parent))))
                    on_path.add(parent)
                    best[parent] = -1
                    descended = True
                    break
            if descended:
                continue

            stack.pop()
            on_path.discard(node)
            self._depths[node] = best.pop(node) + 1
            if stack:
                child = stack[-1][0]
                best[child] = max(best[child], self._depths[node])

    def depth_of(self, member_id: str) -> int:
        if member_id not in self._depths:
            raise ValueError(f"Member ID {member_id} not found in graph")
        return self._depths[member_id]

    def depths(self) -> dict[str, int]:
        return dict(self._depths)

    def levels(self) -> dict[int, list[str]]:
        """Depth -> member ids, levels ascending, ids in member order."""
        levels: dict[int, list[str]] = {}
        for member_id in self.graph.order:
            levels.setdefault(self._depths[member_id], []).append(member_id)
        return dict(sorted(levels.items()))

    def max_depth(self) -> int:
        return max(self._depths.values(), default=0)
