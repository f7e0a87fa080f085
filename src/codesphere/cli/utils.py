"""
CLI Utilities - Shared helper functions for command line operations.
"""

import logging

import click


def echo_success(message: str) -> None:
    """Print a success message with a green checkmark."""
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    """Print an error message with a red cross to stderr."""
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def echo_empty_tree_warning(root: str) -> None:
    """
    Print a hint when a scan finds no source files.

    Args:
        root: The directory that was analyzed.
    """
    click.echo()
    click.echo(click.style(f"⚠️  No source files found under {root}", fg="yellow", bold=True))
    click.echo("   Troubleshooting:")
    click.echo("   1. Are you running this from the project root?")
    click.echo("   2. Check --exclude (node_modules, .git, dist are skipped by default)")
    click.echo("   3. Run with --verbose to see what is being skipped:")
    click.echo(click.style("      codesphere analyze . --verbose", fg="cyan"))
    click.echo()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
