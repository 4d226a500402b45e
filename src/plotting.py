"""Drawing a computed Scene with matplotlib, or exporting it for Graphviz."""

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.patches import Circle, PathPatch
from matplotlib.path import Path as MplPath
import pydot

from models import Scene

NODE_RADIUS = 30

# Fill colors by display category
CATEGORY_COLORS = {
    "male": "lightblue",
    "female": "lightpink",
    "unspecified": "lightgray",
}

EMPTY_TEXT = "No members in this tree yet."


def _link_patch(link) -> PathPatch:
    if link.kind == "curve":
        codes = [MplPath.MOVETO, MplPath.CURVE4, MplPath.CURVE4, MplPath.CURVE4]
    else:
        codes = [MplPath.MOVETO, MplPath.LINETO]
    return PathPatch(
        MplPath(link.points, codes), facecolor="none", edgecolor="#8E9196", linewidth=1.5
    )


def draw_scene(scene: Scene, ax) -> None:
    """Paint nodes and links of a scene onto a matplotlib axes (screen coordinates, y down)."""
    ax.set_xlim(0, scene.width)
    ax.set_ylim(scene.height, 0)
    ax.set_aspect("equal")
    ax.axis("off")

    if scene.is_empty:
        ax.text(
            scene.width / 2, scene.height / 2, EMPTY_TEXT, ha="center", va="center", style="italic"
        )
        return

    for link in scene.links:
        ax.add_patch(_link_patch(link))

    for node in scene.nodes:
        x, y = node.position.x, node.position.y
        ax.add_patch(
            Circle(
                (x, y),
                NODE_RADIUS,
                facecolor=CATEGORY_COLORS.get(node.category, "lightgray"),
                edgecolor="black" if node.position.pinned else "white",
                linewidth=2,
                zorder=2,
            )
        )
        ax.text(x, y, node.label, ha="center", va="center", fontsize=6, zorder=3)

    # Force layouts can drift outside the viewport; keep everything visible
    xs = [n.position.x for n in scene.nodes]
    ys = [n.position.y for n in scene.nodes]
    pad = NODE_RADIUS * 2
    ax.set_xlim(min(0, min(xs) - pad), max(scene.width, max(xs) + pad))
    ax.set_ylim(max(scene.height, max(ys) + pad), min(0, min(ys) - pad))


def plot_scene(scene: Scene, output_path: Path | None = None):
    """Render a scene to an image file, or show it interactively when no path is given."""
    fig, ax = plt.subplots(figsize=(scene.width / 60, scene.height / 60))
    draw_scene(scene, ax)
    ax.set_title(f"Family Tree ({len(scene.nodes)} members, {len(scene.links)} links)")
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        print(f"Graph saved to {output_path}")
    else:
        plt.show()


def scene_to_dot(scene: Scene) -> pydot.Dot:
    """
    Build a Graphviz graph with every node pinned at its computed position.

    Render with ``neato -n`` so Graphviz keeps the coordinates as given.
    Graphviz puts the origin bottom-left, so y is flipped.
    """
    P = pydot.Dot(graph_type="digraph")
    P.set("splines", "true" if scene.mode == "hierarchical" else "line")
    P.set("bb", f"0,0,{scene.width:g},{scene.height:g}")

    for node in scene.nodes:
        x = node.position.x
        y = scene.height - node.position.y
        P.add_node(
            pydot.Node(
                node.id,
                label=node.label,
                shape="circle",
                style="filled",
                fillcolor=CATEGORY_COLORS.get(node.category, "lightgray"),
                fontsize="10",
                pos=f'"{x:.2f},{y:.2f}!"',
            )
        )

    for link in scene.links:
        P.add_edge(pydot.Edge(link.source, link.target, color="darkgray", dir="none"))

    return P


def write_dot(scene: Scene, output_path: Path) -> None:
    output_path.write_text(scene_to_dot(scene).to_string(), encoding="utf-8")
    print(f"DOT file saved to {output_path}")
