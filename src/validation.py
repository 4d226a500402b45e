"""Consistency checks for family tree data."""

import networkx as nx

from graph import FamilyGraph
from parsing import parse_date_string


def validate_graph(graph: FamilyGraph) -> list[str]:
    """
    Validate the family graph for:
    - Parent references that were dropped (missing or self)
    - Cycles in parent-child relationships
    - Impossible ages (child born before parent)
    - Date ordering issues

    Returns a list of warning messages.
    """
    warnings: list[str] = []

    for ref in graph.dropped:
        name = graph.member(ref.member_id).full_name
        if ref.reason == "self":
            warnings.append(f"Ignored: {name} is listed as their own parent")
        else:
            warnings.append(f"Ignored: {name} references missing parent {ref.parent_id}")

    # Check for cycles
    try:
        cycle = nx.find_cycle(graph.G, orientation="original")
        cycle_nodes = [edge[0] for edge in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {cycle_nodes}")
    except nx.NetworkXNoCycle:
        pass

    # Check for impossible ages (child born before parent)
    # Dates are normalized to ISO format (YYYY-MM-DD) which can be compared as strings
    for parent_id, child_id in graph.edges():
        parent = graph.member(parent_id)
        child = graph.member(child_id)

        parent_birth = parse_date_string(parent.birth_date)
        child_birth = parse_date_string(child.birth_date)

        if parent_birth and child_birth:
            if child_birth < parent_birth:
                warnings.append(
                    f"Impossible: {child.full_name} born before parent {parent.full_name}"
                )
            elif int(child_birth[:4]) - int(parent_birth[:4]) < 12:
                warnings.append(
                    f"Suspicious: {parent.full_name} was less than 12 years "
                    f"old when {child.full_name} was born"
                )

    # Check death before birth
    for member in graph.members():
        birth = parse_date_string(member.birth_date)
        death = parse_date_string(member.death_date)

        if birth and death and death < birth:
            warnings.append(f"Impossible: {member.full_name} died before being born")

    return warnings
