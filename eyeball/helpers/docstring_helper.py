"""Docstring parsing for the doc command.

Understands Google style ("Args:" blocks) and NumPy style (underlined
section headers). Anything unrecognised stays in the description.
"""

from __future__ import annotations

import re
from typing import Any

SECTION_ALIASES = {
    "args": "args",
    "arguments": "args",
    "parameters": "args",
    "params": "args",
    "keyword args": "kwargs",
    "keyword arguments": "kwargs",
    "other parameters": "kwargs",
    "returns": "returns",
    "return": "returns",
    "yields": "yields",
    "yield": "yields",
    "raises": "raises",
    "raise": "raises",
    "exceptions": "raises",
    "examples": "examples",
    "example": "examples",
    "notes": "notes",
    "note": "notes",
    "attributes": "attributes",
    "see also": "see_also",
    "warnings": "warnings",
    "warning": "warnings",
}

# Sections whose entries are "name (type): description" / "name : type"
ITEMIZED = frozenset({"args", "kwargs", "raises", "attributes"})

_GOOGLE_HEADER = re.compile(r"^([A-Za-z][A-Za-z ]*):\s*$")
_NUMPY_UNDERLINE = re.compile(r"^-{3,}\s*$")
_GOOGLE_ITEM = re.compile(r"^(\*{0,2}[\w.]+)\s*(?:\(([^)]*)\))?\s*:\s*(.*)$")
_NUMPY_ITEM = re.compile(r"^(\*{0,2}[\w.]+)\s+:\s*(.*)$")


def summary_line(doc: str | None) -> str:
    """First paragraph of a docstring, joined to a single line."""
    if not doc:
        return ""
    paragraph: list[str] = []
    for line in doc.strip().splitlines():
        if not line.strip():
            break
        paragraph.append(line.strip())
    return " ".join(paragraph)


def _section_name(header: str) -> str | None:
    return SECTION_ALIASES.get(header.strip().lower())


def _split_sections(lines: list[str]) -> tuple[list[str], list[tuple[str, list[str]]]]:
    description: list[str] = []
    sections: list[tuple[str, list[str]]] = []
    current: list[str] | None = None
    i = 0
    while i < len(lines):
        line = lines[i]
        # NumPy: "Parameters" followed by "----------"
        if i + 1 < len(lines) and _NUMPY_UNDERLINE.match(lines[i + 1].strip()):
            name = _section_name(line)
            if name:
                current = []
                sections.append((name, current))
                i += 2
                continue
        match = _GOOGLE_HEADER.match(line.strip())
        if match and not line.startswith((" ", "\t")) and _section_name(match.group(1)):
            current = []
            sections.append((_section_name(match.group(1)) or "", current))
            i += 1
            continue
        (description if current is None else current).append(line)
        i += 1
    return description, sections


def _dedent_block(block: list[str]) -> list[str]:
    indents = [len(line) - len(line.lstrip()) for line in block if line.strip()]
    cut = min(indents) if indents else 0
    return [line[cut:] for line in block]


def _parse_items(block: list[str]) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for line in _dedent_block(block):
        if not line.strip():
            continue
        if line.startswith((" ", "\t")):
            # continuation of the previous item
            if items:
                items[-1]["description"] = f"{items[-1]['description']} {line.strip()}".strip()
            continue
        numpy = _NUMPY_ITEM.match(line)
        google = _GOOGLE_ITEM.match(line)
        item: dict[str, Any]
        if numpy:
            item = {"name": numpy.group(1), "type": numpy.group(2).strip(), "description": ""}
        elif google:
            item = {"name": google.group(1), "description": google.group(3).strip()}
            if google.group(2):
                item["type"] = google.group(2).strip()
        else:
            item = {"name": line.strip(), "description": ""}
        items.append(item)
    return items


def parse_docstring(doc: str | None) -> dict[str, Any]:
    """Split a docstring into summary, description and sections.

    Returns:
        {"summary": str, "description": str, "sections": {name: list[dict] | str}}
    """
    if not doc:
        return {"summary": "", "description": "", "sections": {}}

    lines = doc.expandtabs().strip().splitlines()
    description_lines, raw_sections = _split_sections(lines)
    sections: dict[str, Any] = {}
    for name, block in raw_sections:
        if name in ITEMIZED:
            sections.setdefault(name, []).extend(_parse_items(block))
        else:
            text = "\n".join(_dedent_block(block)).strip()
            sections[name] = f"{sections[name]}\n{text}" if name in sections else text

    # The first paragraph is the summary; the description is what follows it
    blank = next((i for i, line in enumerate(description_lines) if not line.strip()), len(description_lines))
    description = "\n".join(description_lines[blank:]).strip()
    summary = summary_line("\n".join(description_lines))
    return {"summary": summary, "description": description, "sections": sections}
