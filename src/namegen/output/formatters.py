"""Output formatters for generated names and favorites."""

import json
import re
from typing import Literal

from namegen.favorites.models import FavoritePerson, PersonDetails
from namegen.models.names import GeneratedName

OutputFormat = Literal["text", "json", "markdown"]


def _escape_markdown(text: str) -> str:
    """Escape markdown special characters to prevent formatting issues."""
    special_chars = r'\\`*_{}[\]()#+\-.!|'
    return re.sub(f'([{re.escape(special_chars)}])', r'\\\1', text)


def to_text(names: list[GeneratedName]) -> str:
    """One full name per line."""
    return "".join(f"{n.full_name}\n" for n in names)


def to_json(names: list[GeneratedName], indent: int = 2) -> str:
    """Export names as a JSON array with Unicode preserved."""
    return json.dumps(
        [n.model_dump() for n in names],
        indent=indent,
        ensure_ascii=False,
    )


def to_markdown(names: list[GeneratedName]) -> str:
    """Export names as a markdown table."""
    if not names:
        return ""

    lines = [
        "| First name | Last name | Gender | Nationality | Decade |",
        "|---|---|---|---|---|",
    ]
    for n in names:
        lines.append(
            f"| {_escape_markdown(n.first_name)} | {_escape_markdown(n.last_name)} "
            f"| {n.gender} | {n.nationality} | {n.decade} |"
        )
    return "\n".join(lines) + "\n"


def format_names(names: list[GeneratedName], fmt: str = "text") -> str:
    """Format generated names in the requested output format."""
    formatters = {
        "text": to_text,
        "json": to_json,
        "markdown": to_markdown,
        "md": to_markdown,
    }
    if fmt not in formatters:
        raise ValueError(f"Unknown format: {fmt}. Available: text, json, markdown")
    return formatters[fmt](names)


def format_details(person: FavoritePerson, details: PersonDetails) -> str:
    """Plain-text character sheet for sharing a favorite.

    Layout: name, two blank lines, then one labelled section per detail
    field separated by blank lines.
    """
    sections = [
        ("Age", details.age),
        ("Characteristics", details.characteristics),
        ("Style", details.clothing_style),
        ("Want", details.wants),
        ("Need", details.needs),
        ("Notes", details.notes),
    ]

    result = f"{person.full_name}\n\n\n"
    result += "\n".join(f"{label}:\n{value}\n" for label, value in sections)
    return result


def details_filename(person: FavoritePerson) -> str:
    """File name used when sharing a favorite's character sheet."""
    first = re.sub(r"[^\w-]", "_", person.first_name)
    last = re.sub(r"[^\w-]", "_", person.last_name)
    return f"Person_{first}_{last}.txt"
