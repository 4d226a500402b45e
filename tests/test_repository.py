import pytest

from models import Member
from repository import MemberRepository


def test_add_get_and_order(member):
    repo = MemberRepository("tree-1")
    repo.add(member("b"))
    repo.add(member("a"))

    assert [m.id for m in repo] == ["b", "a"]
    assert repo.get("a").tree_id == "tree-1"
    assert "a" in repo and len(repo) == 2


def test_duplicate_id_rejected(member):
    repo = MemberRepository(members=[member("1")])

    with pytest.raises(ValueError):
        repo.add(member("1"))


def test_member_from_other_tree_rejected(member):
    repo = MemberRepository("tree-1")

    with pytest.raises(ValueError):
        repo.add(member("1", tree_id="tree-2"))


def test_update_replaces_record_in_place(member):
    repo = MemberRepository(members=[member("1"), member("2"), member("3")])
    original = repo.get("2")

    updated = repo.update(member("2", "1", first_name="Renamed"))

    assert [m.id for m in repo] == ["1", "2", "3"]
    assert repo.get("2").first_name == "Renamed"
    assert repo.get("2").parent_id1 == "1"
    assert updated.updated_at is not None
    assert updated.updated_at != original.updated_at


def test_update_and_remove_unknown_raise(member):
    repo = MemberRepository()

    with pytest.raises(ValueError):
        repo.update(member("x"))
    with pytest.raises(ValueError):
        repo.remove("x")


def test_listeners_receive_snapshots(member):
    repo = MemberRepository()
    seen = []
    unsubscribe = repo.subscribe(lambda snapshot: seen.append([m.id for m in snapshot]))

    repo.add(member("1"))
    repo.add(member("2", "1"))
    repo.remove("1")
    unsubscribe()
    repo.add(member("3"))

    assert seen == [["1"], ["1", "2"], ["2"]]


def test_snapshot_is_read_only(member):
    repo = MemberRepository(members=[member("1")])
    snapshot = repo.snapshot()

    assert isinstance(snapshot, tuple)
    repo.add(member("2"))
    assert len(snapshot) == 1


def test_load_is_all_or_nothing(member):
    repo = MemberRepository(members=[member("1")])
    notified = []
    repo.subscribe(notified.append)

    with pytest.raises(ValueError):
        repo.load([member("a"), member("a")])
    assert [m.id for m in repo] == ["1"]
    assert notified == []

    repo.load([member("a"), member("b")])
    assert [m.id for m in repo] == ["a", "b"]
    assert len(notified) == 1


def test_member_create_generates_id_and_timestamps():
    created = Member.create(" Marie ", "Dupont", gender="F", parent_id1="none")

    assert created.id and created.first_name == "Marie"
    assert created.created_at == created.updated_at
    assert created.parent_refs() == []
    assert created.display_category == "female"


def test_member_create_requires_names():
    with pytest.raises(ValueError):
        Member.create("", "Dupont")
    with pytest.raises(ValueError):
        Member.create("Marie", "  ")


def test_member_from_camel_case_dict():
    m = Member.from_dict(
        {"id": 5, "firstName": "Luc", "lastName": "Dupont", "parentId1": "3", "treeId": "t", "extra": 1}
    )

    assert (m.id, m.first_name, m.parent_id1, m.tree_id) == ("5", "Luc", "3", "t")
    assert Member.from_dict(m.to_dict()) == m


def test_member_from_dict_requires_names():
    with pytest.raises(ValueError):
        Member.from_dict({"id": "1", "firstName": "Luc"})
