"""Data classes for family tree entities and layout output."""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
import uuid

# Parent select boxes submit this when no parent is chosen
NO_PARENT = "none"

GENDER_CATEGORIES = {
    "M": "male",
    "F": "female",
    "O": "unspecified",
}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Member:
    id: str
    first_name: str
    last_name: str
    tree_id: str | None = None
    gender: str | None = None  # M, F, O
    birth_date: str | None = None  # ISO format YYYY-MM-DD or None
    death_date: str | None = None
    birth_place: str | None = None
    bio: str | None = None
    avatar: str | None = None
    parent_id1: str | None = None
    parent_id2: str | None = None
    created_by: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def create(cls, first_name: str, last_name: str, **attrs) -> "Member":
        """Build a new member with a fresh id and creation timestamp."""
        if not first_name or not first_name.strip():
            raise ValueError("First name is required")
        if not last_name or not last_name.strip():
            raise ValueError("Last name is required")

        stamp = now_iso()
        return cls(
            id=str(uuid.uuid4()),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            created_at=stamp,
            updated_at=stamp,
            **attrs,
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_category(self) -> str:
        return GENDER_CATEGORIES.get(self.gender or "", "unspecified")

    def parent_refs(self) -> list[str]:
        """
        Parent ids that are actually set on this record.

        Empty strings, the "none" sentinel and references to the member itself
        are treated as absent. The result may still contain ids that do not
        exist in the tree.
        """
        refs: list[str] = []
        for ref in (self.parent_id1, self.parent_id2):
            if not ref or ref == NO_PARENT or ref == self.id:
                continue
            if ref not in refs:
                refs.append(ref)
        return refs

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        """Build a member from a record using either camelCase or snake_case keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name in known:
                kwargs[name] = value

        missing = [name for name in ("id", "first_name", "last_name") if not kwargs.get(name)]
        if missing:
            raise ValueError(f"Member record is missing required fields: {missing}")

        kwargs["id"] = str(kwargs["id"])
        for name in ("parent_id1", "parent_id2"):
            if kwargs.get(name) is not None:
                kwargs[name] = str(kwargs[name])
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "treeId": self.tree_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "gender": self.gender,
            "birthDate": self.birth_date,
            "deathDate": self.death_date,
            "birthPlace": self.birth_place,
            "bio": self.bio,
            "avatar": self.avatar,
            "parentId1": self.parent_id1,
            "parentId2": self.parent_id2,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


def _snake_case(key: str) -> str:
    chars = []
    for i, ch in enumerate(key):
        if ch.isupper() and i > 0:
            chars.append("_")
        chars.append(ch.lower())
    name = "".join(chars)
    # parentId1 -> parent_id1
    return name.replace("_id_1", "_id1").replace("_id_2", "_id2")


@dataclass
class RelationSet:
    member: Member
    parents: list[Member] = field(default_factory=list)
    siblings: list[Member] = field(default_factory=list)
    children: list[Member] = field(default_factory=list)
    descendants_by_generation: dict[int, list[Member]] = field(default_factory=dict)
    degree: int = 0
    # Same-generation heuristics, not verified relationships
    co_parents: list[Member] = field(default_factory=list)
    cousins: list[Member] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.parents or self.siblings or self.children or self.degree)


@dataclass
class LayoutPosition:
    x: float
    y: float
    pinned: bool = False


@dataclass
class LinkPath:
    source: str
    target: str
    kind: str  # curve, line
    points: list[tuple[float, float]]
    d: str  # SVG path data


@dataclass
class NodeView:
    id: str
    label: str
    category: str
    position: LayoutPosition


@dataclass
class Scene:
    mode: str
    width: float
    height: float
    nodes: list[NodeView] = field(default_factory=list)
    links: list[LinkPath] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.nodes
