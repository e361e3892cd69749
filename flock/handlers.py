# flock/handlers.py
"""
Lambda entry points.

Each handler reads Settings from the environment, opens one database
session for the invocation and returns the BatchResult as a dict. Queue
driven handlers report unprocessed messages in ``batchItemFailures`` so SQS
redelivers only those.
"""
import logging
from typing import Any, Dict, List, Optional

from .config import Settings
from .factory import (
    build_cover_uploader, build_creator, build_downloader, build_isbndb,
    build_ny_times, build_recommender, build_resolver
)
from .pipelines.base import QueueMessage
from .pipelines.population import PopulationPipeline
from .pipelines.recommendation import RecommendationPipeline
from .pipelines.refresh import RefreshPipeline
from .pipelines.sync import SyncPipeline
from .sa.database import Database
from .subjects import SubjectTable

logger = logging.getLogger()

# Loaded once per process and shared by every invocation
SUBJECT_TABLE = SubjectTable.load()


def configure_logging(settings: Settings) -> None:
    logger.setLevel(settings.log_level.upper())


def queue_messages(event: Optional[Dict[str, Any]]) -> List[QueueMessage]:
    """SQS event records -> QueueMessage list"""
    records = (event or {}).get('Records') or []
    return [
        QueueMessage(record.get('messageId', str(index)), record.get('body', ''))
        for index, record in enumerate(records)
    ]


def _run(name: str, event, build_and_run, settings: Optional[Settings] = None) -> Dict[str, Any]:
    settings = settings or Settings.from_env()
    configure_logging(settings)
    logger.info(f"Starting {name} handler")

    with Database.from_settings(settings).invocation() as session:
        result = build_and_run(session, settings)
    return result.to_dict()


def population_handler(event, context=None, settings: Optional[Settings] = None):
    messages = queue_messages(event)

    def run(session, settings):
        downloader = build_downloader(settings)
        pipeline = PopulationPipeline(
            session,
            build_resolver(settings, SUBJECT_TABLE, downloader),
            build_creator(session, settings, build_cover_uploader(settings, downloader))
        )
        return pipeline.run(messages)

    return _run('population', event, run, settings)


def sync_handler(event, context=None, settings: Optional[Settings] = None):
    limit = (event or {}).get('limit')

    def run(session, settings):
        downloader = build_downloader(settings)
        pipeline = SyncPipeline(
            session,
            build_ny_times(settings, downloader),
            build_resolver(settings, SUBJECT_TABLE, downloader),
            build_creator(session, settings, build_cover_uploader(settings, downloader))
        )
        return pipeline.run(limit)

    return _run('sync', event, run, settings)


def refresh_handler(event, context=None, settings: Optional[Settings] = None):
    limit = (event or {}).get('limit')

    def run(session, settings):
        downloader = build_downloader(settings)
        pipeline = RefreshPipeline(
            session,
            build_isbndb(settings, downloader),
            build_cover_uploader(settings, downloader)
        )
        return pipeline.run(limit)

    return _run('refresh', event, run, settings)


def recommendation_handler(event, context=None, settings: Optional[Settings] = None):
    messages = queue_messages(event)

    def run(session, settings):
        downloader = build_downloader(settings)
        pipeline = RecommendationPipeline(
            session,
            build_recommender(settings, downloader),
            build_resolver(settings, SUBJECT_TABLE, downloader),
            build_creator(session, settings, build_cover_uploader(settings, downloader))
        )
        return pipeline.run(messages)

    return _run('recommendation', event, run, settings)
