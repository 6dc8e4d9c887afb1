"""
skill_loader: FastMCP stdio server package that imports Claude Agent Skills from GitHub.

This package resolves skill identifiers against the skills.sh directory, fetches
SKILL.md documents from raw GitHub content, scans them for unsafe instructions and
converts them into Kiro steering files or powers.
"""

__version__: str = "0.1.0"


def version() -> str:
    return __version__


__all__: list[str] = ["__version__", "version"]
