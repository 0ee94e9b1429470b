"""Command dispatcher behind `python -m decktutor` and the `decktutor` script."""

import sys


def main(args: list[str] | None = None) -> int:
    """Main entry point for the decktutor CLI."""
    if args is None:
        args = sys.argv[1:]

    if not args or args[0] in ["-h", "--help", "help"]:
        print_help()
        return 0

    command = args[0]

    if command == "version":
        print_version()
        return 0
    elif command == "search":
        return run_search(args[1:])
    elif command == "config":
        return run_config(args[1:])
    else:
        print(f"Unknown command: {command}")
        print_help()
        return 1


def print_help() -> None:
    """Print CLI help message."""
    print(
        """decktutor - DeckTutor webservice client

Usage:
    decktutor <command> [options]

Commands:
    version     Show version information
    search      Query the card search module
    config      Configuration management
    help        Show this help message

Options:
    -h, --help  Show help message
"""
    )


def print_version() -> None:
    """Print version information."""
    from decktutor import __version__

    print(f"decktutor {__version__}")


def run_search(args: list[str]) -> int:
    """Run the search command group."""
    import click

    from decktutor.cli.search import cli

    try:
        result = cli.main(args=args, prog_name="decktutor search", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.Abort:
        print("Aborted!")
        return 1

    return result if isinstance(result, int) else 0


def run_config(args: list[str]) -> int:
    """Run the config command."""
    from decktutor.cli.config import run_config_command

    return run_config_command(args)


if __name__ == "__main__":
    sys.exit(main())
