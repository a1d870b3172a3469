"""CLI main entry point."""

import json
import runpy
import sys
from pathlib import Path

import click

from . import __version__
from .config import CONFIG_KEYS, load_config, save_config, unset_config
from .engine import INTERRUPTED_MESSAGE, default_engine
from .errors import EXIT_FAILURE, EXIT_INTERRUPTED
from .shared.logging import bind_release, configure_logging, get_logger
from .shared.paths import ensure_dirs, get_log_file

LOG_LEVELS = ["debug", "info", "warning", "error"]


@click.group()
@click.version_option(__version__, prog_name="unshackle")
def cli() -> None:
    """Run scripted, resumable release chains."""


@cli.command("run", context_settings={"ignore_unknown_options": True})
@click.argument("script", type=click.Path(exists=True, dir_okay=False))
@click.argument("script_args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--from",
    "resume_from",
    help="Resume the release at this mark",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level (default: from config, else warning)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    help="Write JSON logs to this file instead of stderr",
)
@click.option(
    "--record",
    is_flag=True,
    help="Write JSON logs to ~/.unshackle/<script>.log",
)
def run_script(
    script: str,
    script_args: tuple[str, ...],
    resume_from: str | None,
    log_level: str | None,
    log_file: str | None,
    record: bool,
) -> None:
    """Run a release SCRIPT.

    The script builds its chain from ``unshackle.release``. With --from, a
    ``start()`` call that names no mark resumes the release at MARK.

    \b
    Example usage:
      unshackle run release.py
      unshackle run release.py --from publish
      unshackle run release.py -- 1.4.0
    """
    engine = default_engine()
    if resume_from:
        engine.config.set_value("resume_from", resume_from, "command line")
    if log_level:
        engine.config.set_value("log_level", log_level.lower(), "command line")

    if record and not log_file:
        ensure_dirs()
        log_file = str(get_log_file(Path(script).stem))

    configure_logging(engine.config.log_level, log_file=log_file, json_output=bool(log_file))
    bind_release(script, engine.config.resume_from)
    log = get_logger(__name__)
    log.info("release_script_started")

    saved_argv = sys.argv
    sys.argv = [script, *script_args]
    try:
        runpy.run_path(script, run_name="__main__")
    except KeyboardInterrupt:
        log.info("release_script_interrupted")
        click.echo(INTERRUPTED_MESSAGE, err=True)
        sys.exit(EXIT_INTERRUPTED)
    finally:
        sys.argv = saved_argv

    log.info("release_script_finished")


@cli.group()
def config() -> None:
    """Manage configuration."""


@config.command("show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def config_show(json_output: bool) -> None:
    """Show the effective configuration and where each value comes from."""
    loaded = load_config()
    values = loaded.to_dict()
    sources = {key: loaded.get_source(key) for key in CONFIG_KEYS}

    if json_output:
        click.echo(json.dumps({"values": values, "sources": sources}, indent=2))
        return

    click.echo("Unshackle Configuration\n")
    for key in CONFIG_KEYS:
        value = values[key]
        shown = "(not set)" if value is None else value
        click.echo(f"  {key:<15s} {shown}  [{sources[key]}]")


@config.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Save a configuration value to the config file."""
    if key == "log_level" and value.lower() not in LOG_LEVELS:
        click.echo(f"Error: Invalid log level '{value}'", err=True)
        click.echo(f"\nValid levels:\n  {', '.join(LOG_LEVELS)}")
        sys.exit(EXIT_FAILURE)

    save_config(key, value)
    click.echo(f"Set {key} = {value}")


@config.command("unset")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
def config_unset(key: str) -> None:
    """Remove a configuration value from the config file."""
    if unset_config(key):
        click.echo(f"Unset {key}")
    else:
        click.echo(f"{key} is not set in the config file")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
