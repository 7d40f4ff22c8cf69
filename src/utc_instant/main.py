"""Command line entry point for inspecting and shifting UTC instants."""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import click

from utc_instant.domain.errors import InstantError
from utc_instant.domain.time import Instant

LOG_LEVEL_ENV_VAR = "UTC_INSTANT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise click.UsageError(f"Unknown log level in {LOG_LEVEL_ENV_VAR}: {level_name}")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


class InstantParamType(click.ParamType):
    """Accepts an ISO timestamp, an ISO date, epoch milliseconds or ``now``."""

    name = "instant"

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> Instant:
        if isinstance(value, Instant):
            return value
        try:
            if value == "now":
                return Instant.now()
            if value.lstrip("-").isdecimal():
                return Instant.from_epoch_millis(int(value))
            return Instant.parse(value)
        except InstantError as exc:
            self.fail(str(exc), param, ctx)


INSTANT = InstantParamType()


@click.group()
@click.option("--verbose", is_flag=True, help="Log at DEBUG level.")
def cli(verbose: bool) -> None:
    """Parse, shift and compare UTC instants.

    The log level defaults to $UTC_INSTANT_LOG_LEVEL (WARNING when unset).
    """
    _configure_logging(verbose)


@cli.command()
@click.argument("value", type=INSTANT)
def show(value: Instant) -> None:
    """Print every textual form and calendar field of VALUE."""
    click.echo(f"iso:     {value.to_iso_string()}")
    click.echo(f"date:    {value.to_iso_date_string()}")
    click.echo(f"json:    {value.to_json()}")
    click.echo(f"utc:     {value.to_utc_string()}")
    click.echo(f"millis:  {value.to_epoch_millis()}")
    click.echo(f"weekday: {value.weekday}")
    click.echo(
        "fields:  "
        f"year={value.year} month_index={value.month_index} day={value.day} "
        f"hour={value.hour} minute={value.minute} second={value.second}"
    )


@cli.command()
@click.argument("value", type=INSTANT)
@click.option("--months", type=int, default=0, show_default=True)
@click.option("--days", type=int, default=0, show_default=True)
@click.option("--hours", type=int, default=0, show_default=True)
@click.option("--minutes", type=int, default=0, show_default=True)
@click.option("--seconds", type=int, default=0, show_default=True)
@click.option("--date-only", is_flag=True, help="Print only the YYYY-MM-DD date.")
def shift(
    value: Instant,
    months: int,
    days: int,
    hours: int,
    minutes: int,
    seconds: int,
    date_only: bool,
) -> None:
    """Apply offsets to VALUE, months first, and print the result."""
    try:
        result = (
            value.add_months(months)
            .add_days(days)
            .add_hours(hours)
            .add_minutes(minutes)
            .add_seconds(seconds)
        )
    except InstantError as exc:
        raise click.UsageError(str(exc)) from exc
    click.echo(result.to_iso_date_string() if date_only else result.to_iso_string())


@cli.command()
@click.argument("first", type=INSTANT)
@click.argument("second", type=INSTANT)
def compare(first: Instant, second: Instant) -> None:
    """Print whether FIRST is before, equal to or after SECOND."""
    if first.is_less_than(second):
        symbol = "<"
    elif first.is_greater_than(second):
        symbol = ">"
    else:
        symbol = "="
    click.echo(f"{first} {symbol} {second}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
