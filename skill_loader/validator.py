"""
skill_loader.validator

Scans skill text for dangerous commands, suspicious paths and injection markers, and checks
that it came from the trusted raw GitHub origin. Returns a Verdict; never raises.
"""

from __future__ import annotations

import re

from skill_loader.config import TRUSTED_URL_PREFIX
from skill_loader.models import Issue, IssueCategory, Verdict

PatternTable = tuple[tuple[re.Pattern[str], str], ...]

DANGEROUS_PATTERNS: PatternTable = (
    (re.compile(r"rm\s+-rf", re.I), "Dangerous recursive delete command (rm -rf)"),
    (re.compile(r"\bsudo\s+", re.I), "Elevated privilege command (sudo)"),
    (re.compile(r"\beval\s*\(", re.I), "Code evaluation (eval)"),
    (re.compile(r"\bexec\s*\(", re.I), "Code execution (exec)"),
    (re.compile(r"curl[^|]*\|\s*(bash|sh)", re.I), "Piping curl output to shell"),
    (re.compile(r"wget[^|]*\|\s*(bash|sh)", re.I), "Piping wget output to shell"),
)

SUSPICIOUS_PATH_PATTERNS: PatternTable = (
    (re.compile(r"/etc/", re.I), "Access to system configuration directory (/etc/)"),
    (re.compile(r"/usr/", re.I), "Access to system binaries directory (/usr/)"),
    (re.compile(r"/bin/", re.I), "Access to system binaries directory (/bin/)"),
    (re.compile(r"~/\.", re.I), "Access to hidden files in home directory"),
)

INJECTION_PATTERNS: PatternTable = (
    (re.compile(r"\$\{[^}]+\}"), "Variable expansion pattern (${...})"),
    (re.compile(r"\$\([^)]+\)"), "Command substitution pattern ($(...))"),
)

PATTERN_CATALOG: tuple[tuple[IssueCategory, PatternTable], ...] = (
    (IssueCategory.DANGEROUS_COMMAND, DANGEROUS_PATTERNS),
    (IssueCategory.SUSPICIOUS_PATTERN, SUSPICIOUS_PATH_PATTERNS),
    (IssueCategory.SUSPICIOUS_PATTERN, INJECTION_PATTERNS),
)


def line_number(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def is_trusted_url(url: str) -> bool:
    return url.startswith(TRUSTED_URL_PREFIX)


def scan(text: str) -> list[Issue]:
    """One Issue per match, in catalog order, each located by 1-based line number."""
    issues: list[Issue] = []
    for category, table in PATTERN_CATALOG:
        for pattern, description in table:
            for match in pattern.finditer(text):
                issues.append(
                    Issue(
                        category=category,
                        description=description,
                        location=f"Line {line_number(text, match.start())}: {match.group(0)}",
                    )
                )
    return issues


def validate(text: str, url: str = "unknown") -> Verdict:
    issues: list[Issue] = []
    if not is_trusted_url(url or ""):
        issues.append(
            Issue(
                category=IssueCategory.UNTRUSTED_SOURCE,
                description="Content does not originate from trusted GitHub domain",
                location=url,
            )
        )
    issues.extend(scan(text or ""))
    return Verdict(issues=tuple(issues))
