"""
1) Load a tree's members from a JSON or GEDCOM file into the member repository.
2) Build the parent -> child graph (dangling parent references are dropped).
3) Validate the tree for cycles, impossible ages, and date ordering.
4) Compute a hierarchical or force-directed layout.
5) Optionally print the relations of one member.
6) Plot the layout and/or export it as a Graphviz DOT file.
"""

import argparse
import logging
from pathlib import Path

from layout import DEFAULT_HEIGHT, DEFAULT_WIDTH, MAX_STEPS, MODES
from models import RelationSet
from parsing import load_members
from plotting import plot_scene, write_dot
from repository import MemberRepository
from validation import validate_graph
from view import TreeView


def format_relations(relations: RelationSet) -> list[str]:
    """Text version of the relations panel."""
    member = relations.member
    lines = [f"Relations of {member.full_name} ({relations.degree} generations)"]

    sections = [
        ("Parents", relations.parents),
        ("Siblings", relations.siblings),
        ("Children", relations.children),
        ("Co-parents", relations.co_parents),
        ("Cousins (same generation)", relations.cousins),
    ]
    for title, people in sections:
        if people:
            lines.append(f"  {title}: " + ", ".join(p.full_name for p in people))

    for generation, people in relations.descendants_by_generation.items():
        if generation > 1:
            lines.append(
                f"  Generation {generation}: " + ", ".join(p.full_name for p in people)
            )

    if relations.is_empty:
        lines.append("  No family relations recorded for this member.")
    return lines


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    project_root = Path(__file__).parent.parent
    parser = argparse.ArgumentParser(description="Lay out and inspect a family tree.")
    parser.add_argument(
        "input", type=Path, nargs="?", default=project_root / "family_tree.json",
        help="members file (.json or .ged)",
    )  # fmt: skip
    parser.add_argument("--tree-id", default=None)
    parser.add_argument("--mode", choices=MODES, default="hierarchical")
    parser.add_argument("--width", type=float, default=DEFAULT_WIDTH)
    parser.add_argument("--height", type=float, default=DEFAULT_HEIGHT)
    parser.add_argument("--steps", type=int, default=MAX_STEPS, help="force layout tick budget")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--member", help="print the relations of this member id")
    parser.add_argument("--plot", type=Path, help="write the layout to an image (png, svg, pdf)")
    parser.add_argument("--dot", type=Path, help="write the layout as a Graphviz DOT file")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(f"Loading members: {args.input}")
    members = load_members(args.input, args.tree_id)
    print(f"  Found {len(members)} members")

    repository = MemberRepository(args.tree_id, members)

    print("Building family graph...")
    view = TreeView(repository, args.mode, args.width, args.height, seed=args.seed)
    if view.graph is None:
        print(f"  {view.placeholder}")
        return 1
    print(f"  Graph has {len(view.graph)} members and {len(view.graph.edges())} parent links")

    print("Validating graph...")
    warnings = validate_graph(view.graph)
    if warnings:
        print(f"  Found {len(warnings)} validation warnings:")
        for w in warnings[:10]:  # Show first 10 warnings
            print(f"    - {w}")
        if len(warnings) > 10:
            print(f"    ... and {len(warnings) - 10} more")
    else:
        print("  No validation issues found")

    print(f"Computing {args.mode} layout...")
    scene = view.settle(args.steps)
    if view.placeholder:
        print(f"  {view.placeholder}")

    if args.member:
        for line in format_relations(view.select(args.member)):
            print(line)

    if args.plot:
        print(f"Plotting graph to: {args.plot}")
        plot_scene(scene, args.plot)
    if args.dot:
        write_dot(scene, args.dot)

    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
