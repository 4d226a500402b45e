import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from models import Member  # noqa: E402


def make_member(member_id, parent_id1=None, parent_id2=None, **attrs):
    attrs.setdefault("first_name", f"First{member_id}")
    attrs.setdefault("last_name", "Dupont")
    return Member(id=member_id, parent_id1=parent_id1, parent_id2=parent_id2, **attrs)


@pytest.fixture
def member():
    return make_member


@pytest.fixture
def dupont_members():
    """Three generations: Jean -> Marie -> (Pierre, Sophie), Pierre -> Luc."""
    return [
        make_member("member-1", first_name="Jean", gender="M", birth_date="1920-05-15"),
        make_member("member-2", "member-1", first_name="Marie", gender="F", birth_date="1925-11-22"),
        make_member("member-3", "member-2", first_name="Pierre", gender="M", birth_date="1945-03-10"),
        make_member("member-4", "member-2", first_name="Sophie", gender="F", birth_date="1948-07-24"),
        make_member("member-5", "member-3", first_name="Luc", gender="M", birth_date="1970-12-05"),
    ]
