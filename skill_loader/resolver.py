"""
skill_loader.resolver

Turns a loose skill identifier into a Coordinate.

Identifier forms:
- owner/name            -> owner/agent-skills, path skills/<name>
- owner/repo/name       -> owner/repo, path skills/<name>
- owner/repo/skills/... -> owner/repo, path used verbatim
- name                  -> looked up in the skills.sh directory listing
"""

from __future__ import annotations

import logging

from skill_loader.config import CONVENTIONAL_REPO, SERVER_NAME, SKILLS_SUBPATH
from skill_loader.directory import SkillDirectory
from skill_loader.errors import ResolutionError, ResolutionErrorKind
from skill_loader.models import Coordinate, DirectoryEntry, Origin

logger = logging.getLogger(f"{SERVER_NAME}.resolver")


def resolve_explicit(identifier: str) -> Coordinate:
    """
    function_purpose: Build a Coordinate from a '/'-separated identifier without any network access.
    """
    parts = [part for part in identifier.split("/") if part]
    if not identifier.isprintable():
        raise ResolutionError(
            "Identifier contains control characters",
            ResolutionErrorKind.MALFORMED,
            identifier,
            ["Try: owner/repo", "Try: owner/repo/skill-name"],
        )
    if len(parts) < 2:
        raise ResolutionError(
            "Invalid identifier format",
            ResolutionErrorKind.MALFORMED,
            identifier,
            ["Try: owner/repo", "Try: owner/repo/skill-name"],
            {"expected_format": "owner/repo or owner/repo/skill-name"},
        )

    if len(parts) == 2:
        owner, short_name = parts
        return Coordinate.build(
            owner, CONVENTIONAL_REPO, f"{SKILLS_SUBPATH}/{short_name}", Origin.DIRECT
        )

    owner, repo, *rest = parts
    if rest[0] == SKILLS_SUBPATH:
        path = "/".join(rest)
    else:
        path = f"{SKILLS_SUBPATH}/" + "/".join(rest)
    return Coordinate.build(owner, repo, path, Origin.DIRECT)


def entry_to_coordinate(entry: DirectoryEntry) -> Coordinate:
    return Coordinate.build(
        entry.owner,
        entry.repo,
        f"{SKILLS_SUBPATH}/{entry.name}",
        Origin.DIRECTORY,
        installs=entry.installs,
        trending=entry.trending,
    )


def match_entries(identifier: str, entries: list[DirectoryEntry]) -> DirectoryEntry:
    """
    Pick the single directory entry an identifier refers to.

    Case-insensitive; a name matches on equality or containment. An exact match beats any
    number of partial matches; otherwise more than one match is ambiguous.
    """
    needle = identifier.lower()
    matches = [e for e in entries if needle == e.name.lower() or needle in e.name.lower()]

    if not matches:
        raise ResolutionError(
            f'Skill "{identifier}" not found in skills.sh directory',
            ResolutionErrorKind.NOT_FOUND,
            identifier,
            ["Try using owner/repo format instead", "Search skills.sh for available skills"],
            {"searched_in": "skills.sh", "total_skills": len(entries)},
        )

    exact = next((e for e in matches if e.name.lower() == needle), None)
    if exact is not None:
        return exact

    if len(matches) > 1:
        raise ResolutionError(
            f'Multiple skills match "{identifier}"',
            ResolutionErrorKind.AMBIGUOUS,
            identifier,
            [e.qualified_name for e in matches],
            {"match_count": len(matches)},
        )
    return matches[0]


class Resolver:
    def __init__(self, directory: SkillDirectory) -> None:
        self.directory = directory

    def resolve(self, identifier: str) -> Coordinate:
        ident = (identifier or "").strip()
        if not ident:
            raise ResolutionError(
                "Skill identifier is required",
                ResolutionErrorKind.MALFORMED,
                identifier or "",
                ["Try: skill-name", "Try: owner/repo/skill-name"],
            )

        if "/" in ident:
            coordinate = resolve_explicit(ident)
        else:
            try:
                entry = match_entries(ident, self.directory.entries())
            except ResolutionError as exc:
                logger.warning("%s", exc.message)
                raise
            coordinate = entry_to_coordinate(entry)

        logger.info(
            "Resolved '%s' -> %s/%s/%s (%s)",
            ident,
            coordinate.owner,
            coordinate.repo,
            coordinate.path,
            coordinate.origin.value,
        )
        return coordinate
