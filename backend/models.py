"""Person, event and tree records produced by a GEDCOM import."""

from typing import Literal
from urllib.parse import quote

from pydantic import BaseModel, Field


Sex = Literal["M", "F", "U"]


class LifeEvent(BaseModel):
    """One entry on a person's timeline."""
    id: str
    type: str = Field(description="Event label, e.g. 'Birth', 'Marriage', 'Census'.")
    date: str = ""
    place: str = ""
    spouse_name: str | None = None  # Marriage only
    note: str | None = None
    sub_type: str | None = None
    description: str | None = None  # inline value, e.g. '1 OCCU Farmer'
    media: list[dict] = Field(default_factory=list)


class PersonRecord(BaseModel):
    """A person in an archive, with resolved relationships."""
    id: str
    user_id: str
    name: str
    gender: Sex = "U"
    birth_year: str = "Unknown"
    death_year: str | None = None
    image_url: str
    summary: str = ""
    is_memorial: bool = True
    timeline: list[LifeEvent] = Field(default_factory=list)
    memories: list[dict] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    parent_ids: list[str] = Field(default_factory=list)
    child_ids: list[str] = Field(default_factory=list)
    spouse_ids: list[str] = Field(default_factory=list)


class TreeRecord(BaseModel):
    """Grouping of the people brought in by one import."""
    id: str
    user_id: str
    name: str = "Staged Import Tree"
    created_at: str
    home_person_id: str = ""
    member_ids: list[str] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Everything a single GEDCOM import hands back to the caller."""
    person_records: list[PersonRecord]
    tree_record: TreeRecord


# ============================================================================
# Placeholder portraits
# ============================================================================

_SILHOUETTES = {
    "M": (
        '<svg width="400" height="400" viewBox="0 0 400 400" fill="none" xmlns="http://www.w3.org/2000/svg">'
        '<rect width="400" height="400" fill="#D4CBB9"/>'
        '<path d="M200 120C222.091 120 240 137.909 240 160C240 182.091 222.091 200 200 200C177.909 200 160 182.091 '
        '160 160C160 137.909 177.909 120 200 120ZM200 220C255.228 220 300 255.82 300 300V320H100V300C100 255.82 '
        '144.772 220 200 220Z" fill="#1C1917" fill-opacity="0.15"/></svg>'
    ),
    "F": (
        '<svg width="400" height="400" viewBox="0 0 400 400" fill="none" xmlns="http://www.w3.org/2000/svg">'
        '<rect width="400" height="400" fill="#D4CBB9"/>'
        '<path d="M200 110C219.33 110 235 125.67 235 145C235 164.33 219.33 180 200 180C180.67 180 165 164.33 '
        '165 145C165 125.67 180.67 110 200 110ZM200 200C244.183 200 280 235.817 280 280C280 290 280 305 280 '
        '320H120C120 305 120 290 120 280C120 235.817 155.817 200 200 200Z" fill="#1C1917" fill-opacity="0.15"/></svg>'
    ),
    "U": (
        '<svg width="400" height="400" viewBox="0 0 400 400" fill="none" xmlns="http://www.w3.org/2000/svg">'
        '<rect width="400" height="400" fill="#D4CBB9"/>'
        '<circle cx="200" cy="150" r="45" fill="#1C1917" fill-opacity="0.15"/>'
        '<path d="M110 320C110 270 150.294 230 200 230C249.706 230 290 270 290 320H110Z" '
        'fill="#1C1917" fill-opacity="0.15"/></svg>'
    ),
}


def get_placeholder_image(gender: str | None) -> str:
    """Data URL of the silhouette for a sex marker (unknown markers get the neutral one)."""
    svg = _SILHOUETTES.get(gender or "U", _SILHOUETTES["U"])
    return f"data:image/svg+xml;utf8,{quote(svg)}"
