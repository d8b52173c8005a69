"""Command-line interface for the profile collector."""

import json
import os
import runpy
import sys
import traceback

import click

from .backends import LoggingBackend
from .core.collector import ProfileCollector
from .core.config import config
from .core.context import ProcessContext
from .core.decision import StaticDecision
from .core.hooks import ManualRegistrar
from .monitoring.logging import setup_logging
from .profilers import CProfileToggle


@click.group()
@click.option("--log-level", default=None, help="Logging level")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(log_level, debug):
    """Profile Collector CLI."""
    if debug:
        log_level = "DEBUG"

    setup_logging(log_level)


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("--profile/--no-profile", default=False, help="Run the full profiler instead of timing only")
@click.option("--name", default=None, help="Operation name (defaults to the script name)")
@click.argument("script", type=click.Path(exists=True, dir_okay=False))
@click.argument("script_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, profile, name, script, script_args):
    """Run a Python script as a worker session."""
    argv = [script, *script_args]
    context = ProcessContext(argv=argv)
    registrar = ManualRegistrar()
    collector = ProfileCollector(
        backend=LoggingBackend(),
        starter=StaticDecision(profile),
        profiler=CProfileToggle(),
        context=context,
        registrar=registrar
    )

    saved_argv = sys.argv
    saved_path = list(sys.path)
    sys.argv = argv
    sys.path.insert(0, os.path.dirname(os.path.abspath(script)))
    exit_code = 0

    collector.start()
    if name:
        collector.set_operation_name(name)

    try:
        runpy.run_path(script, run_name="__main__")
    except SystemExit as exc:
        if exc.code is None:
            exit_code = 0
        elif isinstance(exc.code, int):
            exit_code = exc.code
        else:
            click.echo(str(exc.code), err=True)
            exit_code = 1
    except Exception as exc:
        context.record_exception(exc)
        click.echo(traceback.format_exc(), err=True, nl=False)
        exit_code = 1
    finally:
        sys.argv = saved_argv
        sys.path[:] = saved_path
        registrar.fire()

    ctx.exit(exit_code)


@cli.command("config")
def show_config():
    """Print the effective configuration."""
    click.echo(json.dumps(config.model_dump(), indent=2, sort_keys=True))


def main():
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
