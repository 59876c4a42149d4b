"""CLI entry point for strata."""

import logging
import sys

import click

from strata.config import ACYCLICERS, RANKDIRS, RANKERS, LayoutConfig
from strata.layout import layout
from strata.serialize import dumps, loads


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option(
    "--rankdir", "-r", "rankdir", type=click.Choice(RANKDIRS, case_sensitive=False), default=None, help="Rank direction"
)
@click.option("--ranker", "ranker", type=click.Choice(RANKERS), default=None, help="Ranking algorithm")
@click.option("--acyclicer", "acyclicer", type=click.Choice(ACYCLICERS), default=None, help="Cycle breaking algorithm")
@click.option("--debug-timing", "debug_timing", is_flag=True, help="Log how long each layout phase takes")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
def main(
    input: str | None,
    rankdir: str | None,
    ranker: str | None,
    acyclicer: str | None,
    debug_timing: bool,
    output: str | None,
) -> None:
    """Lay out a JSON graph document and print it with coordinates."""
    if debug_timing:
        logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s", stream=sys.stderr)

    if input:
        try:
            with open(input) as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    try:
        g = loads(text)
    except ValueError as e:
        click.echo(f"error: invalid graph document: {e}", err=True)
        sys.exit(1)

    graph_label = g.graph()
    for key, value in (("rankdir", rankdir), ("ranker", ranker), ("acyclicer", acyclicer)):
        if value is not None:
            graph_label[key] = value

    try:
        layout(g, LayoutConfig(debug_timing=debug_timing))
    except ValueError as e:
        click.echo(f"layout error: {e}", err=True)
        sys.exit(1)

    rendered = dumps(g) + "\n"

    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
