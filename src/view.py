"""Glue between the member repository, the graph engine and a renderer."""

import logging
from typing import Callable

from generations import GenerationCalculator
from graph import FamilyGraph, build_graph
from layout import DEFAULT_HEIGHT, DEFAULT_WIDTH, HIERARCHICAL, LayoutEngine
from models import Member, RelationSet, Scene
from relations import RelationEngine
from repository import MemberRepository

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "No members in this tree yet."
ERROR_MESSAGE = "The family graph could not be drawn: {error}"


class TreeView:
    """
    Keeps a drawable Scene in sync with a MemberRepository.

    Every repository change rebuilds graph, generations and layout. A rebuild
    that raises leaves the last good scene in place and sets ``placeholder``
    instead of clearing the view.
    """

    def __init__(
        self,
        repository: MemberRepository,
        mode: str = HIERARCHICAL,
        width: float | None = DEFAULT_WIDTH,
        height: float | None = DEFAULT_HEIGHT,
        seed: int = 0,
    ):
        self.repository = repository
        self.layout = LayoutEngine(mode, width, height, seed=seed)
        self.graph: FamilyGraph | None = None
        self.generations: GenerationCalculator | None = None
        self.relations: RelationEngine | None = None
        self.scene: Scene | None = None
        self.placeholder: str | None = None
        self.selected: RelationSet | None = None
        self._select_listeners: list[Callable[[RelationSet], None]] = []
        self._unsubscribe = repository.subscribe(self._on_change)
        self.refresh(repository.snapshot())

    def close(self) -> None:
        self._unsubscribe()
        self.layout.cancel()

    def _on_change(self, members: tuple[Member, ...]) -> None:
        self.refresh(members)

    def refresh(self, members: tuple[Member, ...] | list[Member]) -> bool:
        """Rebuild everything from a member snapshot. Returns False if the rebuild failed."""
        try:
            graph = build_graph(list(members))
            generations = GenerationCalculator(graph)
            relations = RelationEngine(graph, generations)
            self.layout.rebuild(graph, generations)
            scene = self.layout.scene()
        except Exception as e:
            logger.exception("Failed to rebuild family graph")
            self.placeholder = ERROR_MESSAGE.format(error=e)
            return False

        self.graph = graph
        self.generations = generations
        self.relations = relations
        self.scene = scene
        self.placeholder = EMPTY_MESSAGE if scene.is_empty else None

        if self.selected is not None:
            selected_id = self.selected.member.id
            self.selected = relations.get_relations(selected_id) if selected_id in graph else None
        return True

    def on_select(self, listener: Callable[[RelationSet], None]) -> None:
        self._select_listeners.append(listener)

    def select(self, member_id: str) -> RelationSet:
        """Selection callback for the renderer: refreshes the relations panel."""
        if self.relations is None:
            raise ValueError("Tree has not been built yet")
        self.selected = self.relations.get_relations(member_id)
        for listener in list(self._select_listeners):
            listener(self.selected)
        return self.selected

    def select_member(self, member: Member) -> RelationSet:
        return self.select(member.id)

    def clear_selection(self) -> None:
        self.selected = None

    def _redraw(self) -> Scene:
        self.scene = self.layout.scene()
        return self.scene

    def tick(self) -> bool:
        """One animation frame; returns True while the layout is still moving."""
        moving = self.layout.schedule_step()()
        self._redraw()
        return moving

    def settle(self, max_steps: int | None = None) -> Scene:
        if max_steps is None:
            self.layout.settle()
        else:
            self.layout.settle(max_steps)
        return self._redraw()

    def drag(self, member_id: str, x: float, y: float | None = None) -> Scene:
        self.layout.drag(member_id, x, y)
        return self._redraw()

    def release(self, member_id: str) -> Scene:
        self.layout.release(member_id)
        return self._redraw()

    def resize(self, width: float | None, height: float | None) -> Scene:
        self.layout.resize(width, height)
        return self._redraw()

    def set_mode(self, mode: str) -> Scene | None:
        self.layout.set_mode(mode)
        self.refresh(self.repository.snapshot())
        return self.scene
