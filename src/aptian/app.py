"""aptian command line interface."""

import logging
from pathlib import Path

import typer

from aptian import __version__
from aptian.collaborators import Collaborators, ExtractorKind
from aptian.errors import AptianError
from aptian.operations import add_packages, init_repository

logger = logging.getLogger(__name__)

cli = typer.Typer(
    name="aptian",
    help="Debian APT repository management tool.",
    no_args_is_help=True,
    add_completion=False,
)


def _fail(error: AptianError) -> typer.Exit:
    typer.echo(f"ERROR: {error}", err=True)
    return typer.Exit(1)


def _version_callback(value: bool):
    if value:
        typer.echo(f"aptian {__version__}")
        raise typer.Exit()


@cli.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Print program version"
    ),
):
    """Debian APT repository management tool."""


@cli.command()
def init(
    directory: Path = typer.Option(
        ..., "--dir", "-d", help="Base directory for the repository structure, must be empty"
    ),
    gpg: str = typer.Option(..., "--gpg", "-k", help="GPG key to use for signing"),
):
    """Initialize an APT repository.

    Example:
        aptian init --dir=/var/www/repo/ --gpg=mailbox@somemail.com
    """
    try:
        init_repository(directory, gpg, Collaborators())
    except AptianError as e:
        raise _fail(e) from e
    typer.echo(f"Initialized APT repository in {directory}")


@cli.command()
def add(
    packages: list[Path] = typer.Argument(..., help="Package files to add (.deb, .udeb)"),
    directory: Path = typer.Option(..., "--dir", "-d", help="Base directory of the APT repository"),
    dist: str = typer.Option(..., "--dist", help="Distribution name, e.g. 'bookworm', 'jammy'"),
    comp: str = typer.Option(..., "--comp", help="APT component name, e.g. 'main'"),
    extractor: ExtractorKind = typer.Option(
        ExtractorKind.DEBFILE, "--extractor", help="How to read control stanzas out of packages"
    ),
):
    """Add Debian packages to an APT repository.

    Example:
        aptian add --dir=/var/www/repo/ --dist=bookworm --comp=main my-package_1.0.0_amd64.deb
    """
    try:
        report = add_packages(directory, dist, comp, packages, Collaborators(extractor=extractor.create()))
    except AptianError as e:
        raise _fail(e) from e

    typer.echo(
        f"Added {len(report.added)} package(s) to {dist}/{comp}"
        f" ({len(report.already_in_pool)} already in pool, {len(report.already_indexed)} already indexed,"
        f" {len(report.skipped)} skipped)"
    )


def main() -> None:
    """Main entry point for the aptian CLI."""
    cli()


if __name__ == "__main__":
    main()
