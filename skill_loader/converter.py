"""
skill_loader.converter

Parses SKILL.md documents (YAML frontmatter + Markdown body) and re-emits them as Kiro
steering files or POWER.md documents.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

import yaml

from skill_loader.config import (
    DEFAULT_SKILL_DESCRIPTION,
    DEFAULT_SKILL_NAME,
    IMPORTED_VIA,
    POWER_AUTHOR,
    POWER_FILENAME,
    SERVER_NAME,
    STEERING_FOOTER,
)
from skill_loader.errors import ParseError, ParseErrorKind, ValidationError
from skill_loader.models import OutputDocument, OutputFormat, ParsedDocument, Section

logger = logging.getLogger(f"{SERVER_NAME}.converter")

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)")
FENCE_MARKER = "```"
MAX_KEYWORDS = 5

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "with", "this", "that", "from", "into",
        "when", "what", "where", "how", "why", "can", "will", "should",
        "would", "could", "has", "have", "had", "are", "was", "were",
        "been", "being", "you", "your", "use", "used", "using",
    }
)


# --- Naming helpers ---
def kebab_case(text: str) -> str:
    """
    function_purpose: Convert any string to kebab-case for filenames and power names.

    "PDF Extractor" -> "pdf-extractor", "React_Best_Practices" -> "react-best-practices",
    "My Skill!!!" -> "my-skill".
    """
    value = text.strip().lower()
    value = re.sub(r"[\s_]+", "-", value)
    value = re.sub(r"[^a-z0-9-]", "", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def extract_keywords(description: str) -> list[str]:
    """Up to five distinct meaningful words from a description, in order of appearance."""
    words = re.sub(r"[^a-z0-9\s]", " ", (description or "").lower()).split()
    keywords: list[str] = []
    for word in words:
        if len(word) < 3 or word in STOP_WORDS or word.isdigit() or word in keywords:
            continue
        keywords.append(word)
    return keywords[:MAX_KEYWORDS]


def _iso_timestamp(moment: datetime) -> str:
    return (
        moment.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


# --- Parsing ---
def _split_frontmatter(text: str) -> tuple[str | None, str]:
    """
    Split a leading '---' delimited block from the body. Delimiters must be exactly '---';
    line endings (LF or CRLF) are removed by splitlines.

    Returns (frontmatter_text, body_text); frontmatter_text is None when the document does
    not open with a complete block.
    """
    lines = text.splitlines(keepends=False)
    if not lines or lines[0] != "---":
        return None, text

    idx = 1
    while idx < len(lines) and lines[idx] != "---":
        idx += 1
    if idx >= len(lines):
        return None, text

    return "\n".join(lines[1:idx]), "\n".join(lines[idx + 1 :])


def _load_frontmatter(fm_text: str) -> dict[str, Any]:
    try:
        fm = yaml.safe_load(fm_text)
    except yaml.YAMLError as exc:
        line = None
        snippet = None
        mark = getattr(exc, "problem_mark", None)
        if mark is not None:
            fm_lines = fm_text.split("\n")
            start = max(0, mark.line - 2)
            snippet = "\n".join(fm_lines[start : mark.line + 3])
            # +1 for 1-based numbering, +1 for the opening '---' line
            line = mark.line + 2
        raise ParseError(
            "Failed to parse YAML frontmatter",
            ParseErrorKind.INVALID_YAML,
            line_number=line,
            snippet=snippet,
            context={"original_error": str(exc)},
        ) from exc

    if not isinstance(fm, dict):
        raise ParseError(
            "YAML frontmatter is not a valid mapping",
            ParseErrorKind.NOT_A_MAPPING,
            snippet="\n".join(fm_text.split("\n")[:5]),
        )
    for required in ("name", "description"):
        if not fm.get(required):
            raise ValidationError(
                f"Skill frontmatter missing required field: {required}", required
            )
    return fm


def split_sections(body: str) -> tuple[Section, ...]:
    """
    function_purpose: Split a Markdown body into heading-delimited sections.

    Headings inside ``` fences are ordinary content. Lines before the first heading belong
    to no section; a body without headings becomes one 'Content' section.
    """
    sections: list[Section] = []
    heading: tuple[str, int] | None = None
    buffer: list[str] = []
    in_fence = False

    for line in body.split("\n"):
        if line.strip().startswith(FENCE_MARKER):
            in_fence = not in_fence

        match = None if in_fence else HEADING_PATTERN.match(line)
        if match is None:
            buffer.append(line)
            continue

        if heading is not None:
            sections.append(Section(heading[0], heading[1], "\n".join(buffer).strip()))
        heading = (match.group(2).strip(), len(match.group(1)))
        buffer = []

    if heading is not None:
        sections.append(Section(heading[0], heading[1], "\n".join(buffer).strip()))
    elif buffer:
        sections.append(Section("Content", 1, "\n".join(buffer).strip()))
    return tuple(sections)


def parse(text: str) -> ParsedDocument:
    """
    function_purpose: Parse raw SKILL.md text into metadata, body and sections.

    Raises ParseError for empty input or malformed frontmatter, ValidationError when
    'name' or 'description' is missing. A document without frontmatter gets default
    metadata and a warning in the log.
    """
    if not text or not text.strip():
        raise ParseError("Skill content is empty", ParseErrorKind.EMPTY)

    fm_text, body = _split_frontmatter(text)
    if fm_text is None:
        logger.warning("No YAML frontmatter found in skill, using defaults")
        metadata: dict[str, Any] = {
            "name": DEFAULT_SKILL_NAME,
            "description": DEFAULT_SKILL_DESCRIPTION,
        }
    else:
        metadata = _load_frontmatter(fm_text)

    body = body.strip()
    return ParsedDocument(metadata=metadata, body=body, sections=split_sections(body))


# --- Conversion ---
def _dump_frontmatter(data: dict[str, Any]) -> str:
    dumped = yaml.safe_dump(
        data, sort_keys=False, allow_unicode=True, default_flow_style=False
    )
    return f"---\n{dumped}---\n\n"


def _injected_heading(doc: ParsedDocument) -> str:
    if doc.body.strip().startswith("#"):
        return ""
    return f"# {doc.name}\n\n"


def _dependencies_block(doc: ParsedDocument) -> str:
    deps = doc.dependencies
    if not deps:
        return ""
    return "\n\n## Dependencies\n\n" + "".join(f"- {dep}\n" for dep in deps)


def to_steering(
    doc: ParsedDocument, source_url: str = "", imported_at: datetime | None = None
) -> OutputDocument:
    """Render a Kiro steering file named <kebab-name>.md."""
    moment = imported_at or datetime.now(timezone.utc)
    timestamp = _iso_timestamp(moment)
    name = kebab_case(doc.name)

    content = _dump_frontmatter(
        {
            "original_skill": doc.name,
            "source_url": source_url,
            "imported_at": timestamp,
        }
    )
    content += _injected_heading(doc)
    if doc.description:
        content += f"{doc.description}\n\n"
    content += doc.body
    content += _dependencies_block(doc)
    content += f"\n\n---\n{STEERING_FOOTER}\n"

    return OutputDocument(
        kind=OutputFormat.STEERING,
        name=name,
        filename=f"{name}.md",
        content=content,
        metadata={
            "original_skill": doc.name,
            "source_url": source_url,
            "imported_at": timestamp,
        },
    )


def to_power(
    doc: ParsedDocument, source_url: str = "", imported_at: datetime | None = None
) -> OutputDocument:
    """Render a Kiro POWER.md with keywords and an Import Metadata block."""
    moment = imported_at or datetime.now(timezone.utc)
    timestamp = _iso_timestamp(moment)
    power_name = kebab_case(doc.name)

    content = _dump_frontmatter(
        {
            "name": power_name,
            "displayName": doc.name,
            "description": doc.description,
            "keywords": extract_keywords(doc.description),
            "author": POWER_AUTHOR,
        }
    )
    content += _injected_heading(doc)
    content += doc.body
    content += _dependencies_block(doc)

    content += "\n\n---\n\n## Import Metadata\n\n"
    content += f"- **Original Skill**: {doc.name}\n"
    if source_url:
        content += f"- **Source URL**: {source_url}\n"
    content += f"- **Imported At**: {timestamp}\n"
    content += f"- **Imported Via**: {IMPORTED_VIA}\n"

    return OutputDocument(
        kind=OutputFormat.POWER,
        name=power_name,
        filename=POWER_FILENAME,
        content=content,
        metadata={
            "original_skill": doc.name,
            "source_url": source_url,
            "imported_at": timestamp,
        },
    )


def convert(
    doc: ParsedDocument,
    output_format: OutputFormat,
    source_url: str = "",
    imported_at: datetime | None = None,
) -> OutputDocument:
    if output_format is OutputFormat.POWER:
        return to_power(doc, source_url, imported_at)
    return to_steering(doc, source_url, imported_at)
