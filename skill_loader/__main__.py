"""
Package entry point for launching the skill_loader server module.

This allows running:
  - python -m skill_loader            -> invokes skill_loader.server CLI
  - python -m skill_loader.server     -> also available directly via the server module

The entry point delegates to skill_loader.server.cli_main() which supports both
CLI inspection modes and starting the stdio MCP server.
"""

from skill_loader.server import cli_main


def main() -> None:
    cli_main()


if __name__ == "__main__":
    main()
