"""
codesphere CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import click

from .commands import analyze


@click.group()
@click.version_option(package_name="codesphere")
def main():
    """codesphere: dependency graph and 3D layout for JS/TS source trees.

    \b
    Quick Start:
      codesphere analyze ./my-app
      codesphere analyze ./my-app --strategy district_cluster -o layout.json
    """
    pass


main.add_command(analyze.analyze)

if __name__ == "__main__":
    main()
