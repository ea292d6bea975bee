"""Plain-language rendering of timeline events."""

from gedcom_dates import format_full_date
from models import LifeEvent


EVENT_VERBS = {
    "Birth": "was born",
    "Death": "passed away",
    "Marriage": "married",
    "Residence": "resided",
    "Census": "appears in the census",
    "Burial": "was laid to rest",
    "Departure/Emigration": "departed",
    "Arrival/Immigration": "arrived",
    "Graduation": "graduated",
    "Military Service": "served",
    "Bar Mitzvah": "celebrated their Bar Mitzvah",
    "Bat Mitzvah": "celebrated their Bat Mitzvah",
    "Confirmation": "was confirmed",
    "Event": "had an event",
}


def event_verb(event_type: str) -> str:
    return EVENT_VERBS.get(event_type, "had a recorded event")


def get_surname(name: str) -> str:
    """Last word of a display name (the whole name when it is a single word)."""
    if not name:
        return ""
    parts = name.split()
    return parts[-1] if len(parts) > 1 else name


def format_event_sentence(person_name: str, event: LifeEvent) -> str:
    """
    Describe an event as a sentence, e.g.
    'Jane Doe was born on June 12, 1900, in Boston.'
    """
    date_str = format_full_date(event.date) if event.date else ""
    place_str = event.place.strip() if event.place else ""

    if event.type == "Birth":
        if date_str and place_str:
            part = f"on {date_str}, in {place_str}"
        elif date_str:
            part = f"on {date_str}"
        elif place_str:
            part = f"in {place_str}"
        else:
            part = ""
        return f"{person_name} was born{' ' + part if part else ''}."

    if event.type == "Marriage":
        spouse = event.spouse_name or "Unknown"
        if place_str and date_str:
            part = f"in {place_str} on {date_str}"
        elif place_str:
            part = f"in {place_str}"
        elif date_str:
            part = f"on {date_str}"
        else:
            part = ""
        return f"{person_name} married {spouse}{' ' + part if part else ''}."

    if date_str and place_str:
        part = f"on {date_str} in {place_str}"
    elif date_str:
        part = f"on {date_str}"
    elif place_str:
        part = f"in {place_str}"
    else:
        part = ""
    return f"{person_name} {event_verb(event.type)}{' ' + part if part else ''}."
