"""GEDCOM import: line parser, generation traversal and record materialization."""

import itertools
import logging
import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Iterable

from gedcom_dates import date_sort_key
from models import (
    ImportResult,
    LifeEvent,
    PersonRecord,
    TreeRecord,
    get_placeholder_image,
)

logger = logging.getLogger("eternal.gedcom_import")


DEFAULT_MAX_GENERATIONS = 4

# Level-1 individual tags that open a timeline event
TAG_TO_LABEL = {
    "BIRT": "Birth",
    "BAPM": "Baptism",
    "BAPT": "Baptism",
    "CHR": "Christening",
    "DEAT": "Death",
    "BURI": "Burial",
    "CREM": "Cremation",
    "RESI": "Residence",
    "EMIG": "Departure/Emigration",
    "IMMI": "Arrival/Immigration",
    "CENS": "Census",
    "MARR": "Marriage",
    "DIV": "Divorce",
    "DIVO": "Divorce",
    "GRAD": "Graduation",
    "EDUC": "Education",
    "OCCU": "Occupation",
    "TITL": "Title",
    "NATI": "Nationality",
    "RELI": "Religion",
    "NATU": "Naturalization",
    "ADOP": "Adoption",
    "BARM": "Bar Mitzvah",
    "BATM": "Bat Mitzvah",
    "CONF": "Confirmation",
    "PROB": "Probate",
    "WILL": "Will",
    "EVEN": "Event",
    "FACT": "Fact",
    "ORDN": "Ordination",
    "MILI": "Military Service",
    "RETI": "Retirement",
}

_YEAR_RE = re.compile(r"\b(\d{4})\b")


# ============================================================================
# Intermediate records (live only for the duration of one import)
# ============================================================================

@dataclass
class EventStub:
    type: str
    date: str = ""
    place: str = ""
    note: str | None = None
    sub_type: str | None = None
    description: str | None = None


@dataclass
class RawIndividual:
    ged_id: str
    name: str = "Unknown"
    gender: str = "U"
    timeline: list[EventStub] = field(default_factory=list)
    birth_year: str = "Unknown"
    death_year: str | None = None
    famc: str | None = None
    fams: list[str] = field(default_factory=list)


@dataclass
class RawFamily:
    ged_id: str
    husb: str = ""
    wife: str = ""
    chil: list[str] = field(default_factory=list)
    marr_date: str = ""
    marr_place: str = ""


class Context(Enum):
    """Which kind of level-0 record the parser is inside."""
    NONE = auto()
    INDIVIDUAL = auto()
    FAMILY = auto()


@dataclass
class ParserState:
    """
    Accumulator for the line fold.

    `current_event` indexes into the current individual's timeline;
    `in_marriage` marks a family's MARR block.
    """
    individuals: dict[str, RawIndividual] = field(default_factory=dict)
    families: dict[str, RawFamily] = field(default_factory=dict)
    root_id: str | None = None
    context: Context = Context.NONE
    current_id: str | None = None
    current_event: int | None = None
    in_marriage: bool = False


# ============================================================================
# Line parser
# ============================================================================

def split_line(raw_line: str) -> tuple[str, str, str] | None:
    """
    Split a GEDCOM line into (level, tag-or-xref, rest).
    Returns None for blank lines and lines without a level separator.
    """
    line = raw_line.strip()
    if not line:
        return None
    level, sep, remainder = line.partition(" ")
    if not sep:
        return None
    tag, _, rest = remainder.partition(" ")
    return level, tag, rest


def _open_record(state: ParserState, xref: str, kind: str) -> None:
    state.current_event = None
    state.in_marriage = False

    if kind == "INDI":
        if state.root_id is None:
            state.root_id = xref
        if xref in state.individuals:
            # last declaration wins; the table keeps the first position
            logger.warning(f"Duplicate individual record {xref}; keeping the later declaration")
        state.individuals[xref] = RawIndividual(ged_id=xref)
        state.context = Context.INDIVIDUAL
        state.current_id = xref
    elif kind == "FAM":
        state.families[xref] = RawFamily(ged_id=xref)
        state.context = Context.FAMILY
        state.current_id = xref
    else:
        state.context = Context.NONE
        state.current_id = None


def _feed_individual(state: ParserState, level: str, tag: str, rest: str) -> None:
    indi = state.individuals[state.current_id]

    if level == "1":
        state.current_event = None
        if tag == "NAME":
            name = re.sub(r"\s{2,}", " ", rest.replace("/", " ")).strip()
            indi.name = name or "Unknown"
        elif tag == "SEX":
            sex = rest.strip().upper()
            indi.gender = sex if sex in ("M", "F") else "U"
        elif tag == "FAMC":
            indi.famc = rest.strip()
        elif tag == "FAMS":
            indi.fams.append(rest.strip())
        elif tag in TAG_TO_LABEL:
            indi.timeline.append(
                EventStub(type=TAG_TO_LABEL[tag], description=rest.strip() or None)
            )
            state.current_event = len(indi.timeline) - 1
        return

    if level != "2" or state.current_event is None:
        return

    event = indi.timeline[state.current_event]
    if tag == "DATE":
        event.date = rest.strip()
        year = _YEAR_RE.search(rest)
        if year:
            if event.type == "Birth":
                indi.birth_year = year.group(1)
            elif event.type == "Death":
                indi.death_year = year.group(1)
    elif tag == "PLAC":
        event.place = rest.strip()
    elif tag == "NOTE":
        event.note = rest.strip()
    elif tag == "TYPE" and rest.strip():
        event.sub_type = rest.strip()


def _feed_family(state: ParserState, level: str, tag: str, rest: str) -> None:
    fam = state.families[state.current_id]

    if level == "1":
        state.in_marriage = tag == "MARR"
        if tag == "HUSB":
            fam.husb = rest.strip()
        elif tag == "WIFE":
            fam.wife = rest.strip()
        elif tag == "CHIL":
            fam.chil.append(rest.strip())
    elif level == "2" and state.in_marriage:
        if tag == "DATE":
            fam.marr_date = rest.strip()
        elif tag == "PLAC":
            fam.marr_place = rest.strip()


def feed_line(state: ParserState, raw_line: str) -> ParserState:
    """Apply one GEDCOM line to the parser state. Unusable lines leave it untouched."""
    parts = split_line(raw_line)
    if parts is None:
        return state
    level, tag, rest = parts

    if level == "0":
        _open_record(state, tag, rest)
    elif state.context is Context.INDIVIDUAL:
        _feed_individual(state, level, tag, rest)
    elif state.context is Context.FAMILY:
        _feed_family(state, level, tag, rest)
    return state


def parse_gedcom_lines(lines: Iterable[str]) -> ParserState:
    """Fold GEDCOM lines into individual and family tables."""
    state = ParserState()
    for line in lines:
        feed_line(state, line)
    logger.debug(
        f"Parsed {len(state.individuals)} individuals and {len(state.families)} families "
        f"(root={state.root_id})"
    )
    return state


def parse_gedcom_text(text: str) -> ParserState:
    """Parse GEDCOM content from a string."""
    return parse_gedcom_lines(text.split("\n"))


# ============================================================================
# Generation traversal
# ============================================================================

def compute_generations(
    root_id: str | None,
    individuals: dict[str, RawIndividual],
    families: dict[str, RawFamily],
) -> dict[str, int]:
    """
    Assign every individual reachable from the root a signed generation offset.

    Parents are one generation up (+1), children one down (-1). Spouses are
    only followed from generation 0, so the root's partners (and their
    ancestors) join the tree without pulling in spouses of spouses.
    The first visit fixes a person's generation. Walks depth-first with an
    explicit stack, in the same order a recursive walk would.
    """
    generations: dict[str, int] = {}
    if root_id is None:
        return generations

    stack: list[tuple[str, int]] = [(root_id, 0)]
    while stack:
        ged_id, gen = stack.pop()
        if ged_id in generations or ged_id not in individuals:
            continue
        generations[ged_id] = gen
        indi = individuals[ged_id]

        next_up: list[tuple[str, int]] = []
        parent_family = families.get(indi.famc) if indi.famc else None
        if parent_family:
            if parent_family.husb:
                next_up.append((parent_family.husb, gen + 1))
            if parent_family.wife:
                next_up.append((parent_family.wife, gen + 1))

        for fam_id in indi.fams:
            fam = families.get(fam_id)
            if fam is None:
                continue
            next_up.extend((child_id, gen - 1) for child_id in fam.chil)
            if gen == 0:
                for spouse_id in (fam.husb, fam.wife):
                    if spouse_id and spouse_id != ged_id:
                        next_up.append((spouse_id, 0))

        stack.extend(reversed(next_up))

    return generations


# ============================================================================
# Identifiers
# ============================================================================

class ImportIds:
    """
    Identifier source for one import.

    Every id embeds the import stamp, so repeated imports of the same file
    never collide. Pass a fixed stamp for reproducible ids.
    """

    def __init__(self, stamp: str | None = None):
        self.stamp = stamp or f"{int(time.time() * 1000)}{uuid.uuid4().hex[:4]}"
        self._events = itertools.count(1)

    def person_id(self, ged_id: str) -> str:
        return f"imp-{self.stamp}-{ged_id.replace('@', '')}"

    def tree_id(self) -> str:
        return f"tree-{self.stamp}"

    def event_id(self, prefix: str = "ev") -> str:
        return f"{prefix}-{self.stamp}-{next(self._events)}"


# ============================================================================
# Record materialization
# ============================================================================

def sort_timeline(events: list[LifeEvent]) -> list[LifeEvent]:
    """Events ordered by date sort key; undated events last, ties keep their order."""
    return sorted(events, key=lambda e: date_sort_key(e.date))


def _add_unique(ids: list[str], new_id: str) -> None:
    if new_id not in ids:
        ids.append(new_id)


def merge_marriage_event(
    person: PersonRecord | None,
    spouse: PersonRecord | None,
    date: str,
    place: str,
    ids: ImportIds,
) -> None:
    """
    Record a marriage on one spouse's timeline.

    A Marriage event with the same raw date is completed (spouse name,
    place) instead of being duplicated.
    """
    if person is None:
        return
    spouse_name = spouse.name if spouse else "Unknown"

    for event in person.timeline:
        if event.type == "Marriage" and event.date == date:
            if not event.spouse_name:
                event.spouse_name = spouse_name
            if place and not event.place:
                event.place = place
            return

    person.timeline.append(LifeEvent(
        id=ids.event_id("ev-marr"),
        type="Marriage",
        date=date,
        place=place,
        spouse_name=spouse_name,
    ))


def _build_person(indi: RawIndividual, person_id: str, owner_id: str, ids: ImportIds) -> PersonRecord:
    timeline = [
        LifeEvent(
            id=ids.event_id(),
            type=stub.type,
            date=stub.date,
            place=stub.place,
            note=stub.note,
            sub_type=stub.sub_type,
            description=stub.description,
        )
        for stub in indi.timeline
    ]
    return PersonRecord(
        id=person_id,
        user_id=owner_id,
        name=indi.name,
        gender=indi.gender,
        birth_year=indi.birth_year,
        death_year=indi.death_year,
        image_url=get_placeholder_image(indi.gender),
        timeline=sort_timeline(timeline),
    )


def link_family(
    family: RawFamily,
    people: dict[str, PersonRecord],
    ids: ImportIds,
) -> None:
    """Link spouses and parent/child pairs of one family and merge its marriage."""
    husb = people.get(family.husb)
    wife = people.get(family.wife)
    children = [people[c] for c in family.chil if c in people]

    if husb and wife and husb is not wife:
        _add_unique(husb.spouse_ids, wife.id)
        _add_unique(wife.spouse_ids, husb.id)

    for child in children:
        for parent in (husb, wife):
            if parent is None or parent is child:
                continue
            _add_unique(child.parent_ids, parent.id)
            _add_unique(parent.child_ids, child.id)

    if family.marr_date or family.marr_place:
        merge_marriage_event(husb, wife, family.marr_date, family.marr_place, ids)
        if wife is not husb:
            merge_marriage_event(wife, husb, family.marr_date, family.marr_place, ids)


def build_import_result(
    state: ParserState,
    generations: dict[str, int],
    owner_id: str,
    max_generations: int,
    ids: ImportIds,
    now: datetime | None = None,
) -> ImportResult:
    """Turn parsed tables into linked person records and the staged tree."""
    people: dict[str, PersonRecord] = {}
    for ged_id, indi in state.individuals.items():
        gen = generations.get(ged_id)
        if gen is None or abs(gen) > max_generations:
            continue
        people[ged_id] = _build_person(indi, ids.person_id(ged_id), owner_id, ids)

    for family in state.families.values():
        link_family(family, people, ids)

    # marriages were appended above
    for person in people.values():
        person.timeline = sort_timeline(person.timeline)

    home = people.get(state.root_id) if state.root_id else None
    records = list(people.values())
    tree = TreeRecord(
        id=ids.tree_id(),
        user_id=owner_id,
        created_at=(now or datetime.now(timezone.utc)).isoformat(),
        home_person_id=home.id if home else "",
        member_ids=[p.id for p in records],
    )
    return ImportResult(person_records=records, tree_record=tree)


def parse_import(
    text: str,
    owner_id: str,
    max_generations: int = DEFAULT_MAX_GENERATIONS,
    ids: ImportIds | None = None,
    now: datetime | None = None,
) -> ImportResult:
    """
    Import GEDCOM text as person records plus one tree record.

    The first individual in the file is the root. Only people within
    `max_generations` of the root (up or down) are kept. Malformed lines and
    dangling references are skipped, never raised.
    """
    if not isinstance(text, str):
        raise TypeError(f"GEDCOM content must be str, not {type(text).__name__}")
    if max_generations < 0:
        raise ValueError(f"max_generations must be >= 0, got {max_generations}")

    ids = ids or ImportIds()
    state = parse_gedcom_text(text)
    generations = compute_generations(state.root_id, state.individuals, state.families)
    result = build_import_result(state, generations, owner_id, max_generations, ids, now)

    logger.info(
        f"Imported {len(result.person_records)} of {len(state.individuals)} individuals "
        f"within {max_generations} generations of {state.root_id}"
    )
    return result


# ============================================================================
# Staging helpers
# ============================================================================

def choose_home(result: ImportResult, person_id: str) -> TreeRecord:
    """Copy of the staged tree centred on the chosen member and named after them."""
    person = next((p for p in result.person_records if p.id == person_id), None)
    if person is None or person_id not in result.tree_record.member_ids:
        raise KeyError(person_id)
    return result.tree_record.model_copy(update={
        "home_person_id": person.id,
        "name": f"The {person.name} Archive",
    })


def merge_profiles(existing: list[PersonRecord], imported: list[PersonRecord]) -> list[PersonRecord]:
    """Existing records followed by imported ones whose id is not already present."""
    existing_ids = {p.id for p in existing}
    return existing + [p for p in imported if p.id not in existing_ids]
