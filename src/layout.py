"""
Node positions for drawing a family graph.

Two strategies share one interface (positions, links, step, drag, release,
resize):

- HierarchicalLayout: one horizontal band per generation, members spread
  evenly across the band. Deterministic.
- ForceSimulation: link springs, many-body repulsion, centering and collision,
  advanced one tick at a time so a UI can run it from its frame callback.

LayoutEngine owns whichever strategy is active and guarantees that frame
callbacks scheduled for an old graph never touch the new one.
"""

from dataclasses import dataclass
import logging
import math
import random
from typing import Callable, Iterator

from generations import GenerationCalculator
from graph import FamilyGraph
from models import LayoutPosition, LinkPath, NodeView, Scene

logger = logging.getLogger(__name__)

HIERARCHICAL = "hierarchical"
FORCE = "force"
MODES = (HIERARCHICAL, FORCE)

DEFAULT_WIDTH = 960
DEFAULT_HEIGHT = 600
MIN_WIDTH = 320
MIN_HEIGHT = 240

LEVEL_SPACING = 120
TOP_MARGIN = 60

LINK_DISTANCE = 100
CHARGE_STRENGTH = -500
COLLIDE_RADIUS = 60
VELOCITY_DECAY = 0.4
ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
REHEAT_ALPHA = 0.3
MAX_STEPS = 300

_INITIAL_RADIUS = 10
_INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


def _viewport(width: float | None, height: float | None) -> tuple[float, float]:
    if not width or width <= 0:
        logger.debug("Viewport width %r unusable, using %d", width, MIN_WIDTH)
        width = MIN_WIDTH
    if not height or height <= 0:
        height = MIN_HEIGHT
    return float(width), float(height)


def curve_path(source: str, target: str, sx: float, sy: float, tx: float, ty: float) -> LinkPath:
    """Cubic link that leaves and enters vertically, bending at mid-height."""
    my = (sy + ty) / 2
    points = [(sx, sy), (sx, my), (tx, my), (tx, ty)]
    d = f"M{sx:g},{sy:g}C{sx:g},{my:g} {tx:g},{my:g} {tx:g},{ty:g}"
    return LinkPath(source, target, "curve", points, d)


def line_path(source: str, target: str, sx: float, sy: float, tx: float, ty: float) -> LinkPath:
    return LinkPath(source, target, "line", [(sx, sy), (tx, ty)], f"M{sx:g},{sy:g}L{tx:g},{ty:g}")


# ============================================================================
# Hierarchical
# ============================================================================


class HierarchicalLayout:
    mode = HIERARCHICAL

    def __init__(
        self,
        graph: FamilyGraph,
        generations: GenerationCalculator,
        width: float | None = DEFAULT_WIDTH,
        height: float | None = DEFAULT_HEIGHT,
        level_spacing: float = LEVEL_SPACING,
        top_margin: float = TOP_MARGIN,
    ):
        self.graph = graph
        self.generations = generations
        self.width, self.height = _viewport(width, height)
        self.level_spacing = level_spacing
        self.top_margin = top_margin
        self._positions: dict[str, LayoutPosition] = {}
        self._arrange()

    def _arrange(self) -> None:
        positions: dict[str, LayoutPosition] = {}
        for depth, ids in self.generations.levels().items():
            band = self.width / (len(ids) + 1)
            y = depth * self.level_spacing + self.top_margin
            for index, member_id in enumerate(ids):
                current = self._positions.get(member_id)
                if current is not None and current.pinned:
                    positions[member_id] = LayoutPosition(current.x, y, pinned=True)
                else:
                    positions[member_id] = LayoutPosition((index + 1) * band, y)
        self._positions = positions

    def step(self) -> bool:
        """Nothing to relax; the layout is final as soon as it is built."""
        return False

    def positions(self) -> dict[str, LayoutPosition]:
        return {k: LayoutPosition(p.x, p.y, p.pinned) for k, p in self._positions.items()}

    def links(self) -> list[LinkPath]:
        paths = []
        for parent, child in self.graph.links():
            a = self._positions.get(parent)
            b = self._positions.get(child)
            if a is None or b is None:
                continue
            paths.append(curve_path(parent, child, a.x, a.y, b.x, b.y))
        return paths

    def drag(self, member_id: str, x: float, y: float | None = None) -> None:
        # y stays locked to the generation band
        if member_id not in self._positions:
            raise ValueError(f"Member ID {member_id} not found in layout")
        position = self._positions[member_id]
        position.x = x
        position.pinned = True

    def release(self, member_id: str) -> None:
        if member_id not in self._positions:
            raise ValueError(f"Member ID {member_id} not found in layout")
        self._positions[member_id].pinned = False

    def resize(self, width: float | None, height: float | None) -> None:
        self.width, self.height = _viewport(width, height)
        self._arrange()

    def stop(self) -> None:
        pass


# ============================================================================
# Force relaxation
# ============================================================================


@dataclass
class _Body:
    id: str
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None


class ForceSimulation:
    """
    Velocity Verlet style relaxation over the member graph.

    Each tick applies, in order: link springs, many-body repulsion,
    centering, then collision. Alpha decays toward ``alpha_target``; once it
    drops below ``alpha_min`` the simulation stops until something re-heats it.
    Pinned bodies keep their fixed coordinates but still pull on linked
    neighbours.
    """

    mode = FORCE

    def __init__(
        self,
        graph: FamilyGraph,
        width: float | None = DEFAULT_WIDTH,
        height: float | None = DEFAULT_HEIGHT,
        seed: int = 0,
        link_distance: float = LINK_DISTANCE,
        charge_strength: float = CHARGE_STRENGTH,
        collide_radius: float = COLLIDE_RADIUS,
        velocity_decay: float = VELOCITY_DECAY,
        alpha_decay: float = ALPHA_DECAY,
        alpha_min: float = ALPHA_MIN,
    ):
        self.graph = graph
        self.width, self.height = _viewport(width, height)
        self.link_distance = link_distance
        self.charge_strength = charge_strength
        self.collide_radius = collide_radius
        self.velocity_decay = velocity_decay
        self.alpha_decay = alpha_decay
        self.alpha_min = alpha_min
        self.alpha = 1.0
        self.alpha_target = 0.0
        self.running = True
        self.ticks = 0
        self._random = random.Random(seed)

        cx, cy = self.center
        self._bodies: dict[str, _Body] = {}
        for i, member_id in enumerate(graph.order):
            # Phyllotaxis spiral so the start is deterministic without a seed
            radius = _INITIAL_RADIUS * math.sqrt(0.5 + i)
            angle = i * _INITIAL_ANGLE
            self._bodies[member_id] = _Body(
                member_id, cx + radius * math.cos(angle), cy + radius * math.sin(angle)
            )

        self._links = [
            (parent, child)
            for parent, child in graph.links()
            if parent in self._bodies and child in self._bodies
        ]
        counts: dict[str, int] = {}
        for parent, child in self._links:
            counts[parent] = counts.get(parent, 0) + 1
            counts[child] = counts.get(child, 0) + 1
        self._link_strength = [1 / min(counts[s], counts[t]) for s, t in self._links]
        self._link_bias = [counts[s] / (counts[s] + counts[t]) for s, t in self._links]

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2

    def _jiggle(self) -> float:
        return (self._random.random() - 0.5) * 1e-6

    # ------------------------------------------------------------------ forces

    def _apply_links(self) -> None:
        for (s, t), strength, bias in zip(self._links, self._link_strength, self._link_bias):
            source = self._bodies[s]
            target = self._bodies[t]
            dx = target.x + target.vx - source.x - source.vx or self._jiggle()
            dy = target.y + target.vy - source.y - source.vy or self._jiggle()
            dist = math.sqrt(dx * dx + dy * dy)
            k = (dist - self.link_distance) / dist * self.alpha * strength
            dx *= k
            dy *= k
            target.vx -= dx * bias
            target.vy -= dy * bias
            source.vx += dx * (1 - bias)
            source.vy += dy * (1 - bias)

    def _apply_charge(self) -> None:
        bodies = list(self._bodies.values())
        for node in bodies:
            for other in bodies:
                if other is node:
                    continue
                dx = other.x - node.x
                dy = other.y - node.y
                if dx == 0:
                    dx = self._jiggle()
                if dy == 0:
                    dy = self._jiggle()
                dist2 = dx * dx + dy * dy
                if dist2 < 1:
                    dist2 = math.sqrt(dist2)
                w = self.charge_strength * self.alpha / dist2
                node.vx += dx * w
                node.vy += dy * w

    def _apply_center(self) -> None:
        if not self._bodies:
            return
        cx, cy = self.center
        n = len(self._bodies)
        sx = sum(b.x for b in self._bodies.values()) / n - cx
        sy = sum(b.y for b in self._bodies.values()) / n - cy
        for body in self._bodies.values():
            body.x -= sx
            body.y -= sy

    def _apply_collide(self) -> None:
        bodies = list(self._bodies.values())
        r = self.collide_radius * 2
        for i, node in enumerate(bodies):
            xi = node.x + node.vx
            yi = node.y + node.vy
            for other in bodies[i + 1 :]:
                x = xi - other.x - other.vx
                y = yi - other.y - other.vy
                dist2 = x * x + y * y
                if dist2 >= r * r:
                    continue
                if x == 0:
                    x = self._jiggle()
                    dist2 += x * x
                if y == 0:
                    y = self._jiggle()
                    dist2 += y * y
                dist = math.sqrt(dist2)
                k = (r - dist) / dist
                x *= k
                y *= k
                # Equal radii, so each body takes half the correction
                node.vx += x * 0.5
                node.vy += y * 0.5
                other.vx -= x * 0.5
                other.vy -= y * 0.5

    # ---------------------------------------------------------------- stepping

    def tick(self) -> None:
        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        self._apply_links()
        self._apply_charge()
        self._apply_center()
        self._apply_collide()

        keep = 1 - self.velocity_decay
        for body in self._bodies.values():
            if body.fx is None:
                body.vx *= keep
                body.x += body.vx
            else:
                body.x = body.fx
                body.vx = 0.0
            if body.fy is None:
                body.vy *= keep
                body.y += body.vy
            else:
                body.y = body.fy
                body.vy = 0.0
        self.ticks += 1

    def step(self) -> bool:
        """Advance one tick. Returns False once the simulation has settled or was stopped."""
        if not self.running:
            return False
        self.tick()
        if self.alpha < self.alpha_min:
            logger.debug("Force layout settled after %d ticks", self.ticks)
            self.running = False
        return self.running

    def frames(self, max_steps: int = MAX_STEPS) -> Iterator[int]:
        """Yield after every tick; the caller decides when to resume."""
        for n in range(max_steps):
            if not self.step():
                return
            yield n

    def run(self, max_steps: int = MAX_STEPS) -> int:
        steps = 0
        for _ in self.frames(max_steps):
            steps += 1
        return steps

    def restart(self) -> None:
        self.running = True

    def stop(self) -> None:
        self.running = False

    # ------------------------------------------------------------ interaction

    def _body(self, member_id: str) -> _Body:
        if member_id not in self._bodies:
            raise ValueError(f"Member ID {member_id} not found in layout")
        return self._bodies[member_id]

    def pin(self, member_id: str, x: float, y: float) -> None:
        body = self._body(member_id)
        body.fx = x
        body.fy = y
        self.alpha_target = REHEAT_ALPHA
        self.restart()

    def drag(self, member_id: str, x: float, y: float | None = None) -> None:
        body = self._body(member_id)
        self.pin(member_id, x, body.y if y is None else y)

    def release(self, member_id: str) -> None:
        body = self._body(member_id)
        body.fx = None
        body.fy = None
        self.alpha_target = 0.0
        self.alpha = max(self.alpha, REHEAT_ALPHA)
        self.restart()

    def resize(self, width: float | None, height: float | None) -> None:
        self.width, self.height = _viewport(width, height)
        self.alpha = REHEAT_ALPHA
        self.restart()

    # ----------------------------------------------------------------- output

    def positions(self) -> dict[str, LayoutPosition]:
        return {
            b.id: LayoutPosition(b.x, b.y, pinned=b.fx is not None)
            for b in self._bodies.values()
        }

    def links(self) -> list[LinkPath]:
        paths = []
        for parent, child in self._links:
            a = self._bodies[parent]
            b = self._bodies[child]
            paths.append(line_path(parent, child, a.x, a.y, b.x, b.y))
        return paths


# ============================================================================
# Engine
# ============================================================================


class LayoutEngine:
    """
    Owns the active layout strategy and its position table.

    ``rebuild`` discards the previous strategy and bumps the epoch, so frame
    callbacks handed out by ``schedule_step`` for the old graph become no-ops.
    """

    def __init__(
        self,
        mode: str = HIERARCHICAL,
        width: float | None = DEFAULT_WIDTH,
        height: float | None = DEFAULT_HEIGHT,
        seed: int = 0,
    ):
        if mode not in MODES:
            raise ValueError(f"Unknown layout mode: {mode}")
        self.mode = mode
        self.width, self.height = _viewport(width, height)
        self.seed = seed
        self.epoch = 0
        self.strategy: HierarchicalLayout | ForceSimulation | None = None
        self.graph: FamilyGraph | None = None

    def set_mode(self, mode: str) -> None:
        """Switch strategy; applies from the next rebuild."""
        if mode not in MODES:
            raise ValueError(f"Unknown layout mode: {mode}")
        self.mode = mode

    def cancel(self) -> None:
        self.epoch += 1
        if self.strategy is not None:
            self.strategy.stop()

    def rebuild(self, graph: FamilyGraph, generations: GenerationCalculator | None = None):
        self.cancel()
        if self.mode == HIERARCHICAL:
            generations = generations or GenerationCalculator(graph)
            strategy = HierarchicalLayout(graph, generations, self.width, self.height)
        else:
            strategy = ForceSimulation(graph, self.width, self.height, seed=self.seed)
        self.strategy = strategy
        self.graph = graph
        logger.debug("Rebuilt %s layout for %d members (epoch %d)", self.mode, len(graph), self.epoch)
        return strategy

    def _require(self):
        if self.strategy is None:
            raise ValueError("Layout has not been built yet")
        return self.strategy

    def schedule_step(self) -> Callable[[], bool]:
        """A frame callback bound to the current layout; stale callbacks do nothing."""
        epoch = self.epoch
        strategy = self._require()

        def frame() -> bool:
            if epoch != self.epoch:
                return False
            return strategy.step()

        return frame

    def frames(self, max_steps: int = MAX_STEPS) -> Iterator[int]:
        epoch = self.epoch
        strategy = self._require()
        for n in range(max_steps):
            if epoch != self.epoch or not strategy.step():
                return
            yield n

    def settle(self, max_steps: int = MAX_STEPS) -> int:
        return sum(1 for _ in self.frames(max_steps))

    def drag(self, member_id: str, x: float, y: float | None = None) -> None:
        self._require().drag(member_id, x, y)

    def release(self, member_id: str) -> None:
        self._require().release(member_id)

    def resize(self, width: float | None, height: float | None) -> None:
        self.width, self.height = _viewport(width, height)
        if self.strategy is not None:
            self.strategy.resize(self.width, self.height)

    def positions(self) -> dict[str, LayoutPosition]:
        return self._require().positions()

    def links(self) -> list[LinkPath]:
        return self._require().links()

    def scene(self) -> Scene:
        strategy = self._require()
        positions = strategy.positions()
        nodes = [
            NodeView(m.id, m.full_name, m.display_category, positions[m.id])
            for m in self.graph.members()
            if m.id in positions
        ]
        return Scene(self.mode, self.width, self.height, nodes, strategy.links())
