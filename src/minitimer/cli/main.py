"""CLI entry point for mini-timer.

Uses Click to expose the ``minitimer`` command group.  ``run`` drives a
timer on a ``BlockingScheduler`` in the foreground and prints every tick.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, TypeVar

import click

import minitimer
from minitimer.core.formatting import format_time
from minitimer.core.scheduler import BlockingScheduler
from minitimer.core.timer import InvalidRangeError, Timer, TimerConfig

T = TypeVar("T")

_EXIT_INTERRUPTED = 130

# Negative numbers such as "-100" must reach the arguments, not the option parser.
_NUMERIC_ARGS = {"ignore_unknown_options": True}


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting timer errors to a CLI error.

    On ``InvalidRangeError`` or a rejected configuration the message is
    printed to stderr and the process exits with code 1.
    """
    try:
        return action()
    except (InvalidRangeError, TypeError, ValueError) as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=minitimer.__version__, prog_name="minitimer")
def cli() -> None:
    """mini-timer: the tiniest timer to tick."""


@cli.command(context_settings=_NUMERIC_ARGS)
@click.argument("start_ms", metavar="FROM", type=float)
@click.argument("inc", type=float)
@click.option("--to", "to", type=float, default=None, help="Stop automatically at this value (ms).")
@click.option("-q", "--quiet", is_flag=True, help="Only print when the timer finishes.")
@click.option("-v", "--verbose", is_flag=True, help="Log timer transitions to stderr.")
def run(start_ms: float, inc: float, to: float | None, quiet: bool, verbose: bool) -> None:
    """Count from FROM by INC milliseconds per tick, printing each tick.

    A negative INC counts down.  Press Ctrl-C to pause and exit.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(name)s: %(message)s")

    scheduler = BlockingScheduler()
    timer = Timer(_run(lambda: TimerConfig(start_ms, inc, to)), scheduler=scheduler)
    if not quiet:
        timer.on("update", lambda elapsed: click.echo(format_time(elapsed)))
    timer.on("finish", lambda elapsed: click.echo(f"Finished at {format_time(elapsed)}"))

    _run(timer.start)
    try:
        scheduler.run()
    except KeyboardInterrupt:
        timer.pause()
        click.echo(f"Paused at {format_time(timer.elapsed)}", err=True)
        sys.exit(_EXIT_INTERRUPTED)


@cli.command("format", context_settings=_NUMERIC_ARGS)
@click.argument("milliseconds", type=float)
def format_command(milliseconds: float) -> None:
    """Print MILLISECONDS as HH:MM:SS (or MM:SS under an hour)."""
    click.echo(_run(lambda: format_time(milliseconds)))
