import logging
from contextlib import contextmanager
from typing import Iterator

import click
from sqlalchemy.orm import Session

from flock.config import Settings
from flock.pipelines.base import BatchResult
from flock.resolvers.book_creator import ItemState
from flock.sa.database import Database

STATE_COLORS = {
    ItemState.INSERTED: 'green',
    ItemState.UPDATED: 'green',
    ItemState.DUPLICATE_MERGED: 'cyan',
    ItemState.REJECTED: 'yellow',
}


def configure_logging(settings: Settings, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


@contextmanager
def open_session(settings: Settings) -> Iterator[Session]:
    """One session for the whole command; the engine is disposed afterwards"""
    with Database.from_settings(settings).invocation() as session:
        yield session


def print_results(result: BatchResult, verbose: bool = False) -> None:
    """Print the outcome of a pipeline run"""
    click.echo("\n" + click.style("Results:", fg='blue'))
    click.echo(click.style("Processed: ", fg='blue') +
               click.style(str(len(result.items)), fg='cyan') +
               click.style(" items", fg='blue'))
    for state, count in result.summary().items():
        click.echo(click.style(f"{state}: ", fg='blue') +
                   click.style(str(count), fg=STATE_COLORS.get(ItemState(state), 'white')))

    rejected = [item for item in result.items if item.state == ItemState.REJECTED]
    if rejected and verbose:
        click.echo("\n" + click.style("Skipped items:", fg='yellow'))
        for item in rejected:
            click.echo(click.style(f"{item.item_id}: {item.reason}", fg='yellow'))
    elif rejected:
        click.echo(click.style(f"\nSkipped {len(rejected)} items. ", fg='yellow') +
                   click.style("Use --verbose to see details.", fg='blue'))

    if result.partial:
        click.echo("\n" + click.style(f"Stopped early: {result.error}", fg='red'))
