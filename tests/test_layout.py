import math

import pytest

from generations import GenerationCalculator
from graph import build_graph
from layout import (
    LEVEL_SPACING,
    MIN_WIDTH,
    TOP_MARGIN,
    ForceSimulation,
    HierarchicalLayout,
    LayoutEngine,
)


def hierarchical(members, width=800, height=600):
    graph = build_graph(members)
    return HierarchicalLayout(graph, GenerationCalculator(graph), width, height)


def test_hierarchical_bands(dupont_members):
    layout = hierarchical(dupont_members, width=900)
    positions = layout.positions()

    assert (positions["member-1"].x, positions["member-1"].y) == (450, TOP_MARGIN)
    assert positions["member-2"].y == LEVEL_SPACING + TOP_MARGIN
    assert (positions["member-3"].x, positions["member-4"].x) == (300, 600)
    assert positions["member-3"].y == positions["member-4"].y == 2 * LEVEL_SPACING + TOP_MARGIN
    assert positions["member-5"].y == 3 * LEVEL_SPACING + TOP_MARGIN


def test_hierarchical_is_deterministic(dupont_members):
    assert hierarchical(dupont_members).positions() == hierarchical(dupont_members).positions()


def test_hierarchical_links_are_curves(member):
    layout = hierarchical([member("1"), member("2", "1"), member("3", "1", "missing")])
    links = layout.links()

    assert [(l.source, l.target) for l in links] == [("1", "2"), ("1", "3")]
    assert all(l.kind == "curve" for l in links)
    first = links[0]
    assert first.d.startswith("M") and "C" in first.d
    assert first.points[0] == (400, TOP_MARGIN)


def test_hierarchical_drag_keeps_level(dupont_members):
    layout = hierarchical(dupont_members)
    before = layout.positions()["member-3"]

    layout.drag("member-3", 42, 999)
    after = layout.positions()["member-3"]
    assert (after.x, after.y, after.pinned) == (42, before.y, True)

    link = next(l for l in layout.links() if l.target == "member-3")
    assert link.points[-1] == (42, before.y)

    layout.release("member-3")
    assert layout.positions()["member-3"].pinned is False


def test_hierarchical_resize_redivides_bands(member):
    layout = hierarchical([member("1"), member("2")], width=300)
    layout.resize(600, 400)

    assert [p.x for p in layout.positions().values()] == [200, 400]


def test_zero_width_falls_back_to_minimum(member):
    layout = hierarchical([member("1")], width=0)

    assert layout.positions()["1"].x == MIN_WIDTH / 2


def test_layouts_handle_empty_graph():
    graph = build_graph([])

    assert HierarchicalLayout(graph, GenerationCalculator(graph)).positions() == {}
    sim = ForceSimulation(graph)
    sim.run(10)
    assert sim.positions() == {}
    assert sim.links() == []


def test_force_positions_every_member_including_isolated(member):
    sim = ForceSimulation(build_graph([member("1"), member("2", "1"), member("lonely", "missing")]))
    sim.run()

    positions = sim.positions()
    assert set(positions) == {"1", "2", "lonely"}
    assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in positions.values())
    assert [(l.source, l.target, l.kind) for l in sim.links()] == [("1", "2", "line")]


def test_force_settles_and_stops(dupont_members):
    sim = ForceSimulation(build_graph(dupont_members))
    steps = sim.run(1000)

    assert steps < 1000
    assert sim.alpha < sim.alpha_min
    assert sim.step() is False


def test_force_keeps_nodes_apart(dupont_members):
    sim = ForceSimulation(build_graph(dupont_members))
    sim.run()
    points = list(sim.positions().values())

    for i, a in enumerate(points):
        for b in points[i + 1 :]:
            assert math.hypot(a.x - b.x, a.y - b.y) > 60


def test_force_is_reproducible(dupont_members):
    a = ForceSimulation(build_graph(dupont_members), seed=7)
    b = ForceSimulation(build_graph(dupont_members), seed=7)
    a.run()
    b.run()

    for key, pa in a.positions().items():
        pb = b.positions()[key]
        assert pa.x == pytest.approx(pb.x, abs=1e-6)
        assert pa.y == pytest.approx(pb.y, abs=1e-6)


def test_force_centers_layout(dupont_members):
    sim = ForceSimulation(build_graph(dupont_members), width=800, height=600)
    sim.run()
    positions = list(sim.positions().values())

    cx = sum(p.x for p in positions) / len(positions)
    cy = sum(p.y for p in positions) / len(positions)
    assert cx == pytest.approx(400, abs=5)
    assert cy == pytest.approx(300, abs=5)


def test_force_pin_and_release(dupont_members):
    sim = ForceSimulation(build_graph(dupont_members))
    sim.run()

    sim.pin("member-1", 10, 20)
    assert sim.running
    for _ in range(20):
        sim.step()
    pinned = sim.positions()["member-1"]
    assert (pinned.x, pinned.y, pinned.pinned) == (10, 20, True)

    sim.release("member-1")
    assert sim.positions()["member-1"].pinned is False
    assert sim.alpha >= 0.3
    assert sim.step() is True


def test_force_resize_moves_center(member):
    sim = ForceSimulation(build_graph([member("1"), member("2", "1")]), width=400, height=400)
    sim.run()
    sim.resize(1000, 400)

    assert sim.running
    sim.run()
    xs = [p.x for p in sim.positions().values()]
    assert sum(xs) / len(xs) == pytest.approx(500, abs=5)


def test_engine_rejects_unknown_mode():
    with pytest.raises(ValueError):
        LayoutEngine("radial")


def test_engine_discards_stale_frames(dupont_members, member):
    engine = LayoutEngine("force")
    engine.rebuild(build_graph(dupont_members))
    stale = engine.schedule_step()
    assert stale() is True

    engine.rebuild(build_graph([member("new")]))
    fresh_positions = engine.positions()

    assert stale() is False
    assert engine.positions() == fresh_positions
    assert engine.schedule_step()() is True


def test_engine_scene(dupont_members):
    engine = LayoutEngine("hierarchical", 900, 600)
    engine.rebuild(build_graph(dupont_members))
    scene = engine.scene()

    assert [n.id for n in scene.nodes] == [m.id for m in dupont_members]
    assert scene.nodes[0].label == "Jean Dupont"
    assert scene.nodes[0].category == "male"
    assert scene.nodes[1].category == "female"
    assert len(scene.links) == 4
    assert not scene.is_empty


def test_engine_drag_before_build_raises():
    with pytest.raises(ValueError):
        LayoutEngine().drag("1", 0, 0)
