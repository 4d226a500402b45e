"""Member import (JSON, GEDCOM) and date handling utilities."""

import json
import logging
from pathlib import Path
import re
from typing import Callable

from ged4py import GedcomReader

from models import Member

logger = logging.getLogger(__name__)

_MONTHS = [
    "JANUARY", "FEBRUARY", "MARCH", "APRIL", "MAY", "JUNE",
    "JULY", "AUGUST", "SEPTEMBER", "OCTOBER", "NOVEMBER", "DECEMBER",
]  # fmt: skip

# Full names plus three-letter abbreviations, and SEPT
MONTH_MAP = {name: i for i, name in enumerate(_MONTHS, start=1)}
MONTH_MAP.update({name[:3]: i for i, name in enumerate(_MONTHS, start=1)})
MONTH_MAP["SEPT"] = 9

_QUALIFIERS = re.compile(
    r"^(ABOUT|AFTER|BEFORE|AROUND|CIRCA|ABT\.?|BEF\.?|AFT\.?|EST\.?|CAL\.?|CA\.?|BET\.?|FROM|TO|AND):?\s*",
    flags=re.IGNORECASE,
)


def _iso(year: int, month: int | None, day: int | None) -> str | None:
    if month is None or not 1 <= month <= 12:
        return None
    if day is None or not 1 <= day <= 31:
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def _month(name: str) -> int | None:
    return MONTH_MAP.get(name.upper().rstrip("."))


# Each pattern maps its match groups to (year, month, day); tried in order
_DATE_PATTERNS: list[tuple[re.Pattern, Callable[[re.Match], str | None]]] = [
    # 1839-08-29, 1746-00-00 (zero month/day means unknown)
    (
        re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"),
        lambda m: _iso(int(m[1]), int(m[2]) or 1, int(m[3]) or 1),
    ),
    # 25 NOV 1954, 11 Aug. 1968, 02 May1838
    (
        re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$"),
        lambda m: _iso(int(m[3]), _month(m[2]), int(m[1])),
    ),
    # NOV 1954, May, 1837
    (
        re.compile(r"^([A-Za-z]+)\.?,?\s*(\d{4})$"),
        lambda m: _iso(int(m[2]), _month(m[1]), 1),
    ),
    # 1698
    (re.compile(r"^(\d{4})$"), lambda m: _iso(int(m[1]), 1, 1)),
    # 01-27-1920, 05/15/1923, 04 05 1911 (month first)
    (
        re.compile(r"^(\d{1,2})[-/\s]+(\d{1,2})[-/\s]+(\d{4})$"),
        lambda m: _iso(int(m[3]), int(m[1]), int(m[2])),
    ),
    # April 17, 1850, SEPT. 17,1910, Oct.12,1929
    (
        re.compile(r"^([A-Za-z]+)\.?\s*(\d{1,2}),?\s*(\d{4})$"),
        lambda m: _iso(int(m[3]), _month(m[1]), int(m[2])),
    ),
]


def parse_date_string(date_str: str | None) -> str | None:
    """
    Parse a loosely formatted date into ISO format (YYYY-MM-DD).
    Returns None if the date cannot be parsed.

    Handles GEDCOM dates ("25 NOV 1954", "ABT 1905", "JAN 1905") as well as
    hand-typed ones like "(05/15/1923)", "(SEPT. 17,1910)" or "(1789?)".
    Partial dates default to the first month/day.
    """
    if not date_str:
        return None

    s = date_str.strip().strip("()").rstrip("?")
    s = _QUALIFIERS.sub("", s).strip()
    if not s:
        return None

    for pattern, build in _DATE_PATTERNS:
        match = pattern.match(s)
        if match:
            iso = build(match)
            if iso:
                return iso
    return None


# ============================================================================
# JSON
# ============================================================================


def load_members_json(filepath: Path, tree_id: str | None = None) -> list[Member]:
    """
    Load members from a JSON file.

    Accepts either a list of member records or an object with a "members"
    list. Keys may be camelCase (firstName, parentId1) or snake_case.
    """
    with open(filepath, encoding="utf-8") as f:
        data = json.load(f)

    records = data.get("members", []) if isinstance(data, dict) else data
    members = []
    for record in records:
        member = Member.from_dict(record)
        if tree_id is not None and member.tree_id is None:
            member.tree_id = tree_id
        members.append(member)
    return members


# ============================================================================
# GEDCOM
# ============================================================================


def parse_gedcom(filepath: Path) -> GedcomReader:
    """Parse a GEDCOM file and return the reader object."""
    return GedcomReader(str(filepath))


def xref_to_id(xref_id: str) -> str:
    """'@I123@' -> 'I123'"""
    return xref_id.strip("@")


def extract_name_parts(indi) -> tuple[str, str]:
    """Extract given name and surname from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return ("Unknown", "Unknown")

    # ged4py returns NAME as tuple: (given, surname, suffix)
    if isinstance(name_rec.value, tuple):
        given, surname, _ = name_rec.value
        return (given or "Unknown", surname or "Unknown")

    givn = name_rec.sub_tag("GIVN")
    surn = name_rec.sub_tag("SURN")
    if givn or surn:
        return (givn.value if givn else "Unknown", surn.value if surn else "Unknown")

    # Fallback: string format "Given /Surname/"
    text = str(name_rec.value)
    match = re.match(r"^([^/]*)/([^/]*)/?", text)
    if match:
        return (match[1].strip() or "Unknown", match[2].strip() or "Unknown")
    return (text.strip() or "Unknown", "Unknown")


def extract_event_details(indi, tag: str) -> tuple[str | None, str | None]:
    """Extract ISO date and place from an event tag (BIRT, DEAT, etc.)."""
    event = indi.sub_tag(tag)
    if event is None:
        return (None, None)

    date_rec = event.sub_tag("DATE")
    place_rec = event.sub_tag("PLAC")

    # ged4py may return DateValue objects
    date_val = parse_date_string(str(date_rec.value)) if date_rec and date_rec.value else None
    place_val = str(place_rec.value) if place_rec and place_rec.value else None
    return (date_val, place_val)


def extract_gender(indi) -> str | None:
    sex_rec = indi.sub_tag("SEX")
    if sex_rec is None or not sex_rec.value:
        return None
    return sex_rec.value if sex_rec.value in ("M", "F") else "O"


def normalize_members(reader: GedcomReader, tree_id: str | None = None) -> list[Member]:
    """
    Turn INDI records into members and FAM records into parent references.

    HUSB becomes parent_id1 and WIFE parent_id2 of every CHIL. A child listed
    in several families keeps the first parent found for each slot.
    """
    members: dict[str, Member] = {}

    for rec in reader.records0("INDI"):
        if rec.xref_id is None:
            continue

        member_id = xref_to_id(rec.xref_id)
        first_name, last_name = extract_name_parts(rec)
        birth_date, birth_place = extract_event_details(rec, "BIRT")
        death_date, _ = extract_event_details(rec, "DEAT")

        members[member_id] = Member(
            id=member_id,
            tree_id=tree_id,
            first_name=first_name,
            last_name=last_name,
            gender=extract_gender(rec),
            birth_date=birth_date,
            death_date=death_date,
            birth_place=birth_place,
        )

    for rec in reader.records0("FAM"):
        if rec.xref_id is None:
            continue

        husb = rec.sub_tag("HUSB")
        wife = rec.sub_tag("WIFE")
        husb_id = xref_to_id(husb.xref_id) if husb and husb.xref_id else None
        wife_id = xref_to_id(wife.xref_id) if wife and wife.xref_id else None

        for child in rec.sub_tags("CHIL"):
            if not child.xref_id:
                continue
            member = members.get(xref_to_id(child.xref_id))
            if member is None:
                logger.warning("Family %s lists unknown child %s", rec.xref_id, child.xref_id)
                continue
            if husb_id and not member.parent_id1:
                member.parent_id1 = husb_id
            if wife_id and not member.parent_id2:
                member.parent_id2 = wife_id

    return list(members.values())


def load_members(filepath: Path, tree_id: str | None = None) -> list[Member]:
    """Load members from a .json or .ged file."""
    suffix = filepath.suffix.lower()
    if suffix == ".json":
        return load_members_json(filepath, tree_id)
    if suffix in (".ged", ".gedcom"):
        return normalize_members(parse_gedcom(filepath), tree_id)
    raise ValueError(f"Unsupported input format: {filepath.suffix}")
