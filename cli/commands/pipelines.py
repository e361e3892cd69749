import json
import click

from flock.config import Settings
from flock.factory import (
    build_cover_uploader, build_creator, build_downloader, build_isbndb,
    build_ny_times, build_recommender, build_resolver
)
from flock.pipelines.base import QueueMessage
from flock.pipelines.population import PopulationPipeline
from flock.pipelines.recommendation import RecommendationPipeline
from flock.pipelines.refresh import RefreshPipeline
from flock.pipelines.sync import SyncPipeline
from flock.subjects import SubjectTable
from ..utils import configure_logging, open_session, print_results


def _message(payload) -> QueueMessage:
    """Wrap a payload the way the queue delivers it"""
    return QueueMessage('cli', json.dumps({'Message': payload}))


@click.command()
@click.argument('book_ids', nargs=-1, required=True)
@click.option('--no-covers', is_flag=True, help='Skip downloading and uploading covers')
@click.option('--verbose/--no-verbose', default=False, help='Show detailed progress')
def populate(book_ids, no_covers: bool, verbose: bool):
    """Enrich placeholder books with provider data

    Example:
        flock populate 3f0c...  # Populate one book
        flock populate id1 id2 --no-covers
    """
    settings = Settings.from_env()
    configure_logging(settings, verbose)
    downloader = build_downloader(settings)

    with open_session(settings) as session:
        uploader = None if no_covers else build_cover_uploader(settings, downloader)
        pipeline = PopulationPipeline(
            session,
            build_resolver(settings, SubjectTable.load(), downloader),
            build_creator(session, settings, uploader)
        )
        result = pipeline.run([_message(json.dumps(list(book_ids)))])

    print_results(result, verbose)


@click.command()
@click.option('--limit', default=None, type=int, help='Limit number of bestsellers to import')
@click.option('--no-covers', is_flag=True, help='Skip downloading and uploading covers')
@click.option('--verbose/--no-verbose', default=False, help='Show detailed progress')
def sync(limit: int, no_covers: bool, verbose: bool):
    """Import the current NY Times bestsellers"""
    settings = Settings.from_env()
    configure_logging(settings, verbose)
    downloader = build_downloader(settings)

    with open_session(settings) as session:
        uploader = None if no_covers else build_cover_uploader(settings, downloader)
        pipeline = SyncPipeline(
            session,
            build_ny_times(settings, downloader),
            build_resolver(settings, SubjectTable.load(), downloader),
            build_creator(session, settings, uploader)
        )
        result = pipeline.run(limit)

    print_results(result, verbose)


@click.command()
@click.option('--limit', default=None, type=int, help='Limit number of books to refresh')
@click.option('--verbose/--no-verbose', default=False, help='Show detailed progress')
def refresh(limit: int, verbose: bool):
    """Retry covers that failed the quality check"""
    settings = Settings.from_env()
    configure_logging(settings, verbose)
    downloader = build_downloader(settings)

    with open_session(settings) as session:
        pipeline = RefreshPipeline(
            session,
            build_isbndb(settings, downloader),
            build_cover_uploader(settings, downloader)
        )
        result = pipeline.run(limit)

    print_results(result, verbose)


@click.command()
@click.argument('user_a')
@click.argument('user_b')
@click.option('--no-covers', is_flag=True, help='Skip downloading and uploading covers')
@click.option('--verbose/--no-verbose', default=False, help='Show detailed progress')
def recommend(user_a: str, user_b: str, no_covers: bool, verbose: bool):
    """Suggest new books from the books two users share"""
    settings = Settings.from_env()
    configure_logging(settings, verbose)
    downloader = build_downloader(settings)

    with open_session(settings) as session:
        uploader = None if no_covers else build_cover_uploader(settings, downloader)
        pipeline = RecommendationPipeline(
            session,
            build_recommender(settings, downloader),
            build_resolver(settings, SubjectTable.load(), downloader),
            build_creator(session, settings, uploader)
        )
        result = pipeline.run([_message(json.dumps({'users': [user_a, user_b]}))])

    print_results(result, verbose)
