"""
skill_loader.server

FastMCP stdio server that imports Claude Agent Skills (SKILL.md) from GitHub and converts
them into Kiro steering files or powers.

Server-level documentation:
- Purpose: Let MCP-aware clients discover skills on skills.sh, fetch them from GitHub,
  scan them for unsafe instructions and convert them to Kiro formats.
- Why use it:
  * Browse, search and rank skills from the skills.sh directory
  * Fetch raw SKILL.md content by short name or owner/repo/skill path
  * Flag dangerous commands, suspicious paths and untrusted sources before use
  * Convert skills to steering files or POWER.md documents in one import call
- Transport: STDIO by default (ideal for clients that spawn the server process)
- Safety: Content is never executed; unsafe skills block imports unless validation is skipped
- Logging: Console (stderr) + rotating file logs

Environment (optional):
- LOG_FILE: override log file path (default: <repo_root>/logs/skill_loader.log)
- LOG_LEVEL: logging level (default: INFO)

Usage:
- As a script:
  python -m skill_loader.server        # starts stdio server
  python -m skill_loader.server --help # CLI for inspection without starting server

- As a module within MCP client config (stdio):
  command: python
  args: ["-m", "skill_loader.server"]

Package: skill_loader
Entry point: python -m skill_loader.server
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import Any

import httpx
from fastmcp import FastMCP

from skill_loader import __version__, converter, validator
from skill_loader.config import (
    MAX_PAGE_SIZE,
    MAX_RESULT_LIMIT,
    SERVER_NAME,
    _resolve_log_file,
    _resolve_log_level,
)
from skill_loader.directory import SkillDirectory
from skill_loader.fetcher import Fetcher
from skill_loader.models import OutputFormat
from skill_loader.pipeline import ImportPipeline
from skill_loader.resolver import Resolver


# --- Logging setup ---
def configure_logging() -> logging.Logger:
    """
    function_purpose: Configure application-wide logging to both console and rotating file.

    - Creates logs directory if needed.
    - Console output goes to stderr; stdout carries the MCP protocol.
    - Safe to call more than once; handlers are attached only the first time.
    """
    logger = logging.getLogger(SERVER_NAME)
    level = _resolve_log_level()
    logger.setLevel(level)
    if logger.handlers:
        return logger

    log_file = _resolve_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"
    )

    # Console handler
    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    # Rotating file handler (5 files, 5MB each)
    fh = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
    fh.setLevel(level)
    fh.setFormatter(formatter)
    logger.addHandler(fh)

    logger.info("Logging initialized. File: %s", str(log_file))
    return logger


def _http_client() -> httpx.Client:
    return httpx.Client(headers={"User-Agent": f"skill-loader/{__version__}"})


# --- Tool implementations (plain functions, callable without the MCP layer) ---
def list_directory(
    directory: SkillDirectory, page: int = 1, page_size: int = 50
) -> dict[str, Any]:
    """
    function_purpose: Paginate the all-time skills.sh leaderboard.

    Page numbers start at 1; page_size is capped at MAX_PAGE_SIZE.
    """
    page = max(page, 1)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    board = directory.leaderboard("all")
    start = (page - 1) * page_size
    return {
        "skills": [entry.to_dict() for entry in board[start : start + page_size]],
        "total": len(board),
        "page": page,
        "page_size": page_size,
    }


def search_directory(
    directory: SkillDirectory, query: str, limit: int = 20
) -> dict[str, Any]:
    """
    function_purpose: Search the cached directory by keyword, most installed first.

    Relevance counts down from the number of matches so the top hit scores highest.
    """
    if not query or not query.strip():
        raise ValueError("Search query is required")
    results = directory.search(query)
    limit = min(max(limit, 1), MAX_RESULT_LIMIT)
    skills = []
    for index, entry in enumerate(results[:limit]):
        item = entry.to_dict()
        item["relevance"] = len(results) - index
        skills.append(item)
    return {"skills": skills, "query": query, "count": len(results)}


def leaderboard(
    directory: SkillDirectory, timeframe: str = "all", limit: int = 20
) -> dict[str, Any]:
    board = directory.leaderboard(timeframe)
    limit = min(max(limit, 1), MAX_RESULT_LIMIT)
    skills = []
    for rank, entry in enumerate(board[:limit], start=1):
        item = entry.to_dict()
        item["rank"] = rank
        skills.append(item)
    return {"skills": skills, "timeframe": timeframe, "count": len(board)}


def fetch_skill_content(
    resolver: Resolver, fetcher: Fetcher, identifier: str
) -> dict[str, Any]:
    """
    function_purpose: Resolve an identifier and fetch the raw SKILL.md text.
    """
    coordinate = resolver.resolve(identifier)
    raw = fetcher.fetch(coordinate)
    return {
        "content": raw.text,
        "url": raw.url,
        "metadata": {
            "name": coordinate.skill_name,
            "owner": coordinate.owner,
            "repo": coordinate.repo,
            "skill_path": coordinate.path,
            "origin": coordinate.origin.value,
            "installs": coordinate.installs,
            "fetched_at": raw.fetched_at.isoformat(),
        },
    }


def validate_content(content: str, url: str = "unknown") -> dict[str, Any]:
    if not content or not content.strip():
        raise ValueError("Skill content is required")
    return validator.validate(content, url or "unknown").to_dict()


def convert_content(
    content: str, output_format: str, source_url: str = ""
) -> dict[str, Any]:
    """
    function_purpose: Parse SKILL.md text and convert it to a steering file or power.

    Returns the rendered document plus its metadata; nothing is written to disk.
    """
    if not content or not content.strip():
        raise ValueError("Skill content is required")
    fmt = OutputFormat(output_format)
    parsed = converter.parse(content)
    return converter.convert(parsed, fmt, source_url=source_url).to_dict()


def build_pipeline(client: httpx.Client) -> ImportPipeline:
    return ImportPipeline(Resolver(SkillDirectory(client)), Fetcher(client))


def _entries_markdown(title: str, skills: list[dict[str, Any]]) -> str:
    if not skills:
        return f"# {title}\n\nNo skills found.\n"
    lines = [f"# {title}\n\n"]
    for skill in skills:
        prefix = f"{skill['rank']}. " if "rank" in skill else ""
        lines.append(f"## {prefix}{skill['name']}\n")
        if skill.get("description"):
            lines.append(f"{skill['description']}\n\n")
        lines.append(f"**Source:** `{skill['owner']}/{skill['repo']}`  \n")
        lines.append(f"**Installs:** {skill['installs']:,}  \n")
        if skill.get("trending"):
            lines.append("**Trending:** yes  \n")
        lines.append("\n")
    return "".join(lines)


# --- FastMCP server and tools ---
def _server_description() -> str:
    """
    function_purpose: Provide a server-level description that clients can display.
    """
    return (
        "SkillLoader MCP Server: discovers Claude Agent Skills on skills.sh, fetches them from "
        "GitHub, scans them for unsafe instructions and converts them to Kiro steering files "
        "or powers."
    )


mcp = FastMCP(
    SERVER_NAME,
    instructions=(
        "SkillLoader MCP Server\n"
        "\n"
        "Purpose:\n"
        "- Import Claude Agent Skills (SKILL.md with YAML frontmatter) from GitHub and convert them\n"
        "  into Kiro steering files or powers.\n"
        "\n"
        "Identifiers:\n"
        "- 'pdf'                      : short name, looked up in the skills.sh directory\n"
        "- 'owner/skill'              : assumes owner/agent-skills, path skills/<skill>\n"
        "- 'owner/repo/skill'         : path skills/<skill> inside owner/repo\n"
        "- 'owner/repo/skills/a/b'    : path used as given\n"
        "\n"
        "Safety:\n"
        "- validate_skill flags dangerous commands (rm -rf, sudo, eval, curl | sh), suspicious paths\n"
        "  (/etc/, /usr/, /bin/, ~/.) and injection markers (${...}, $(...)).\n"
        "- Content not served from https://raw.githubusercontent.com/ is untrusted.\n"
        "- import_skill refuses unsafe skills unless skip_validation=True. Content is never executed.\n"
        "\n"
        "Exposed tools:\n"
        "- skill_server_info(): server name, description, version, transport\n"
        "- list_skills(page?, page_size?, markdown_output?): paginated skills.sh leaderboard\n"
        "- search_skills(query, limit?, markdown_output?): keyword search over the directory\n"
        "- get_leaderboard(timeframe?, limit?, markdown_output?): top ('all') or trending ('24h') skills\n"
        "- fetch_skill(identifier): raw SKILL.md content and provenance\n"
        "- validate_skill(content, url?): security verdict (safe | warning | unsafe) with issues\n"
        "- convert_to_steering(content, source_url?): Kiro steering file\n"
        "- convert_to_power(content, source_url?): Kiro POWER.md\n"
        "- import_skill(identifier, output_format?, skip_validation?): fetch + validate + convert\n"
        "\n"
        "Output:\n"
        "- Converted documents are returned, not written. Use 'target_path' from import_skill as the\n"
        "  conventional location (.kiro/steering/<name>.md or ~/.kiro/powers/<name>/POWER.md).\n"
    ),
)


@mcp.tool
def skill_server_info() -> dict[str, Any]:
    """
    function_purpose: Return server-level documentation including purpose and usage.

    Returns:
    - name: str          Server name
    - description: str   High-level description of server purpose and capabilities
    - version: str       Package version
    - transport: str     Transport used by the server (e.g., "stdio")
    """
    return {
        "name": SERVER_NAME,
        "description": _server_description(),
        "version": __version__,
        "transport": "stdio",
    }


@mcp.tool
def list_skills(
    page: int = 1, page_size: int = 50, markdown_output: bool = False
) -> dict[str, Any] | str:
    """
    function_purpose: List available skills from skills.sh with pagination.

    Args:
    - page: int               Page number (default: 1)
    - page_size: int          Results per page (default: 50, max: 100)
    - markdown_output: bool   If True, return formatted markdown instead of JSON (default: False)

    Returns:
    - If markdown_output=False: {skills: [{name, description, owner, repo, installs, trending}], total, page, page_size}
    - If markdown_output=True: formatted markdown string
    """
    with _http_client() as client:
        result = list_directory(SkillDirectory(client), page, page_size)
    if not markdown_output:
        return result
    return _entries_markdown(
        f"Skills (page {result['page']}, {result['total']} total)", result["skills"]
    )


@mcp.tool
def search_skills(
    query: str, limit: int = 20, markdown_output: bool = False
) -> dict[str, Any] | str:
    """
    function_purpose: Search the skills.sh directory by keyword in name, description, owner or repo.

    Args:
    - query: str              Case-insensitive substring (required)
    - limit: int              Max results (default: 20, max: 50)
    - markdown_output: bool   If True, return formatted markdown instead of JSON (default: False)

    Returns:
    - {skills: [... with relevance], query, count} sorted by install count
    """
    with _http_client() as client:
        result = search_directory(SkillDirectory(client), query, limit)
    if not markdown_output:
        return result
    return _entries_markdown(f"Search Results for '{query}'", result["skills"])


@mcp.tool
def get_leaderboard(
    timeframe: str = "all", limit: int = 20, markdown_output: bool = False
) -> dict[str, Any] | str:
    """
    function_purpose: Get top-installed ("all") or trending ("24h") skills.

    Returns:
    - {skills: [... with rank], timeframe, count}
    """
    with _http_client() as client:
        result = leaderboard(SkillDirectory(client), timeframe, limit)
    if not markdown_output:
        return result
    return _entries_markdown(f"Leaderboard ({timeframe})", result["skills"])


@mcp.tool
def fetch_skill(identifier: str) -> dict[str, Any]:
    """
    function_purpose: Fetch raw SKILL.md content from GitHub.

    Args:
    - identifier: str   Skill name or owner/repo[/skill] path

    Returns:
    - {content, url, metadata: {name, owner, repo, skill_path, origin, installs, fetched_at}}

    Usage:
    - Tries branches main, master and HEAD in order; transient failures are retried.
    """
    with _http_client() as client:
        directory = SkillDirectory(client)
        return fetch_skill_content(Resolver(directory), Fetcher(client), identifier)


@mcp.tool
def validate_skill(content: str, url: str = "unknown") -> dict[str, Any]:
    """
    function_purpose: Validate skill content for security issues.

    Returns:
    - {is_valid, severity: "safe" | "warning" | "unsafe", issues: [{type, description, location}]}
    """
    return validate_content(content, url)


@mcp.tool
def convert_to_steering(content: str, source_url: str = "") -> dict[str, Any]:
    """
    function_purpose: Convert SKILL.md content to a Kiro steering file.

    Returns:
    - {kind, name, filename, content, metadata: {original_skill, source_url, imported_at}}
    """
    return convert_content(content, OutputFormat.STEERING.value, source_url)


@mcp.tool
def convert_to_power(content: str, source_url: str = "") -> dict[str, Any]:
    """
    function_purpose: Convert SKILL.md content to a Kiro POWER.md document.

    Returns:
    - {kind, name, filename, content, metadata: {original_skill, source_url, imported_at}}
    """
    return convert_content(content, OutputFormat.POWER.value, source_url)


@mcp.tool
def import_skill(
    identifier: str, output_format: str = "steering", skip_validation: bool = False
) -> dict[str, Any]:
    """
    function_purpose: Import a skill end to end: resolve, fetch, validate, convert.

    Args:
    - identifier: str          Skill name or owner/repo[/skill] path
    - output_format: str       "steering" or "power" (default: "steering")
    - skip_validation: bool    Skip the security scan (default: False)

    Returns:
    - {success, content, filename, target_path, metadata: {skill_name, source_url, output_format, validation_result}, error?, failed_step?}

    Usage:
    - Failures are reported in the result (success=False) rather than raised.
    - The document is not written; save 'content' to 'target_path' if desired.
    """
    with _http_client() as client:
        result = build_pipeline(client).run(identifier, output_format, skip_validation)
    return result.to_dict()


# --- Entry points ---
def run() -> None:
    """
    function_purpose: Entry point to start the MCP stdio server.
    """
    logger = configure_logging()
    logger.info("Server starting (version %s)", __version__)
    mcp.run()  # stdio transport by default


def cli_main() -> None:
    """
    function_purpose: CLI for exercising each step without starting the MCP server.

    Usage:
      python -m skill_loader.server --list
      python -m skill_loader.server --search "<QUERY>"
      python -m skill_loader.server --leaderboard [all|24h]
      python -m skill_loader.server --resolve <IDENTIFIER>
      python -m skill_loader.server --fetch <IDENTIFIER>
      python -m skill_loader.server --validate <FILE> [--url URL]
      python -m skill_loader.server --convert <FILE> [--format steering|power] [--url URL]
      python -m skill_loader.server --import <IDENTIFIER> [--format steering|power] [--skip-validation]
    """
    import argparse
    import json
    from pathlib import Path

    logger = configure_logging()

    parser = argparse.ArgumentParser(
        prog="skill_loader.server",
        description="Import Claude skills into Kiro formats or start stdio MCP server.",
    )
    parser.add_argument(
        "--list", action="store_true", help="List skills from skills.sh and exit"
    )
    parser.add_argument("--search", metavar="QUERY", help="Search skills by keyword")
    parser.add_argument(
        "--leaderboard",
        nargs="?",
        const="all",
        choices=["all", "24h"],
        help="Show the leaderboard (default timeframe: all)",
    )
    parser.add_argument(
        "--resolve", metavar="IDENTIFIER", help="Resolve an identifier to a GitHub coordinate"
    )
    parser.add_argument(
        "--fetch", metavar="IDENTIFIER", help="Fetch raw SKILL.md content"
    )
    parser.add_argument(
        "--validate", metavar="FILE", help="Security-scan a local SKILL.md file"
    )
    parser.add_argument(
        "--convert", metavar="FILE", help="Convert a local SKILL.md file"
    )
    parser.add_argument(
        "--import",
        dest="import_identifier",
        metavar="IDENTIFIER",
        help="Run the full import workflow",
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.STEERING.value,
        help="Output format for --convert and --import",
    )
    parser.add_argument("--url", default="", help="Source URL for --validate/--convert")
    parser.add_argument(
        "--skip-validation", action="store_true", help="Skip security scan on --import"
    )
    parser.add_argument("--limit", type=int, default=20, help="Max results to show")
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start MCP stdio server (default when no flags used)",
    )

    args = parser.parse_args()

    def emit(payload: Any) -> None:
        print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))

    if args.validate:
        logger.info("Validating file: %s", args.validate)
        text = Path(args.validate).read_text(encoding="utf-8")
        emit(validate_content(text, args.url or "unknown"))
        return

    if args.convert:
        logger.info("Converting file: %s -> %s", args.convert, args.format)
        text = Path(args.convert).read_text(encoding="utf-8")
        emit(convert_content(text, args.format, args.url))
        return

    with _http_client() as client:
        directory = SkillDirectory(client)

        if args.list:
            logger.info("Listing skills...")
            emit(list_directory(directory, 1, args.limit))
            return

        if args.search:
            logger.info("Search query: %s", args.search)
            emit(search_directory(directory, args.search, args.limit))
            return

        if args.leaderboard:
            logger.info("Leaderboard: %s", args.leaderboard)
            emit(leaderboard(directory, args.leaderboard, args.limit))
            return

        if args.resolve:
            logger.info("Resolving: %s", args.resolve)
            emit(Resolver(directory).resolve(args.resolve).to_dict())
            return

        if args.fetch:
            logger.info("Fetching: %s", args.fetch)
            emit(fetch_skill_content(Resolver(directory), Fetcher(client), args.fetch))
            return

        if args.import_identifier:
            logger.info("Importing: %s as %s", args.import_identifier, args.format)
            pipeline = build_pipeline(client)
            emit(
                pipeline.run(
                    args.import_identifier, args.format, args.skip_validation
                ).to_dict()
            )
            return

    # Default: start server
    run()


if __name__ == "__main__":
    cli_main()
