"""
skill_loader.models

Immutable records passed between the resolver, fetcher, validator, converter and pipeline.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from skill_loader.config import CANONICAL_REF, RAW_CONTENT_ORIGIN, SKILL_FILENAME


class Origin(str, Enum):
    DIRECTORY = "skills.sh"
    DIRECT = "github"


class IssueCategory(str, Enum):
    DANGEROUS_COMMAND = "dangerous_command"
    SUSPICIOUS_PATTERN = "suspicious_pattern"
    UNTRUSTED_SOURCE = "untrusted_source"


class Severity(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    UNSAFE = "unsafe"


class OutputFormat(str, Enum):
    STEERING = "steering"
    POWER = "power"


def raw_content_url(owner: str, repo: str, ref: str, path: str) -> str:
    """Build {origin}/{owner}/{repo}/{ref}/{path}/SKILL.md, tolerating a leading slash on path."""
    clean_path = path[1:] if path.startswith("/") else path
    return f"{RAW_CONTENT_ORIGIN}/{owner}/{repo}/{ref}/{clean_path}/{SKILL_FILENAME}"


@dataclass(frozen=True)
class Coordinate:
    owner: str
    repo: str
    path: str
    url: str
    origin: Origin
    installs: int | None = None
    trending: bool = False

    @classmethod
    def build(
        cls,
        owner: str,
        repo: str,
        path: str,
        origin: Origin,
        installs: int | None = None,
        trending: bool = False,
    ) -> Coordinate:
        return cls(
            owner=owner,
            repo=repo,
            path=path,
            url=raw_content_url(owner, repo, CANONICAL_REF, path),
            origin=origin,
            installs=installs,
            trending=trending,
        )

    @property
    def skill_name(self) -> str:
        return self.path.rstrip("/").split("/")[-1]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["origin"] = self.origin.value
        return data


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    owner: str
    repo: str
    installs: int
    description: str | None = None
    trending: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}/{self.repo}/{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description or "",
            "owner": self.owner,
            "repo": self.repo,
            "installs": self.installs,
            "trending": self.trending,
        }


@dataclass(frozen=True)
class RawDocument:
    text: str
    url: str
    fetched_at: datetime
    coordinate: Coordinate


@dataclass(frozen=True)
class Issue:
    category: IssueCategory
    description: str
    location: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.category.value,
            "description": self.description,
            "location": self.location,
        }


def determine_severity(issues: tuple[Issue, ...] | list[Issue]) -> Severity:
    """
    Reduce an issue sequence to a severity.

    No issues is safe; any untrusted source or dangerous command is unsafe;
    only suspicious patterns is a warning.
    """
    if not issues:
        return Severity.SAFE
    blocking = {IssueCategory.UNTRUSTED_SOURCE, IssueCategory.DANGEROUS_COMMAND}
    if any(issue.category in blocking for issue in issues):
        return Severity.UNSAFE
    return Severity.WARNING


@dataclass(frozen=True)
class Verdict:
    issues: tuple[Issue, ...] = ()

    @property
    def severity(self) -> Severity:
        return determine_severity(self.issues)

    @property
    def is_valid(self) -> bool:
        return self.severity is not Severity.UNSAFE

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "severity": self.severity.value,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(frozen=True)
class Section:
    heading: str
    level: int
    body: str


@dataclass(frozen=True)
class ParsedDocument:
    metadata: dict[str, Any]
    body: str
    sections: tuple[Section, ...]

    @property
    def name(self) -> str:
        return str(self.metadata["name"])

    @property
    def description(self) -> str:
        return str(self.metadata.get("description") or "")

    @property
    def dependencies(self) -> list[str]:
        deps = self.metadata.get("dependencies")
        if isinstance(deps, str):
            return [deps] if deps.strip() else []
        if isinstance(deps, (list, tuple)):
            return [str(dep) for dep in deps]
        return []


@dataclass(frozen=True)
class OutputDocument:
    kind: OutputFormat
    name: str
    filename: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "filename": self.filename,
            "content": self.content,
            "metadata": dict(self.metadata),
        }
