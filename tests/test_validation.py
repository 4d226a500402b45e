from graph import build_graph
from validation import validate_graph


def test_clean_tree_has_no_warnings(member):
    members = [
        member("1", birth_date="1900-01-01"),
        member("2", "1", birth_date="1930-06-01", death_date="1990-02-02"),
    ]

    assert validate_graph(build_graph(members)) == []


def test_dropped_references_are_reported(member):
    warnings = validate_graph(build_graph([member("1", "1"), member("2", "999")]))

    assert any("own parent" in w for w in warnings)
    assert any("999" in w for w in warnings)


def test_cycle_is_reported(member):
    warnings = validate_graph(build_graph([member("1", "3"), member("2", "1"), member("3", "2")]))

    assert any(w.startswith("Cycle detected") for w in warnings)


def test_date_problems(member):
    members = [
        member("p", first_name="Old", birth_date="1950-01-01"),
        member("c", "p", first_name="Early", birth_date="1940-01-01"),
        member("y", "p", first_name="Young", birth_date="1955"),
        member("d", first_name="Ghost", birth_date="1 JAN 1900", death_date="1899"),
    ]
    warnings = validate_graph(build_graph(members))

    assert "Impossible: Early Dupont born before parent Old Dupont" in warnings
    assert any(w.startswith("Suspicious: Old Dupont") and "Young Dupont" in w for w in warnings)
    assert "Impossible: Ghost Dupont died before being born" in warnings


def test_dupont_sample_flags_young_parent(dupont_members):
    warnings = validate_graph(build_graph(dupont_members))

    assert warnings == [
        "Suspicious: Jean Dupont was less than 12 years old when Marie Dupont was born"
    ]
