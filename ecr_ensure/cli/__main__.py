import typer

from ecr_ensure import __version__
from ecr_ensure.cli.ensure import ensure_app
from ecr_ensure.logger import setup_logger


def version_callback(version: bool) -> None:
    if version:
        typer.echo(f"ecr-ensure Version: {__version__}")
        raise typer.Exit()


cli = typer.Typer(context_settings={"help_option_names": ["-h", "--help"]})


@cli.callback()
def main_options(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    setup_logger(verbose)


cli.add_typer(
    ensure_app, name="ensure", help="Ensure an ECR repository exists."
)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
