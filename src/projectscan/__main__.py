"""Entry point for the projectscan CLI.

Usage:
    python -m projectscan <command> [args...]
    projectscan <command> [args...]          (after pip install -e .)
"""

from projectscan.adapters.cli import run_cli


def main() -> None:
    run_cli()


if __name__ == "__main__":
    main()
