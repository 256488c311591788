import logging
from datetime import datetime, timedelta
from typing import Dict

from celery import shared_task
from flask import current_app

from app.libs.session import session_scope

from .constants import SearchType
from .models import SearchHistory

logger = logging.getLogger(__name__)


def _entry_from_payload(entry_data: Dict) -> Dict:
    data = dict(entry_data)
    data["search_type"] = SearchType(data.get("search_type") or SearchType.ALL.value)
    if data.get("created_at"):
        data["created_at"] = datetime.fromisoformat(data["created_at"])
    return data


@shared_task(name="app.search.tasks.record_search", ignore_result=True)
def record_search(entry_data: Dict):
    """
    Persist one search history entry.

    History is a side effect of searching: failures are logged and dropped,
    never retried.
    """
    try:
        with session_scope() as session:
            entry = SearchHistory.record(session, **_entry_from_payload(entry_data))
            logger.debug(f"Recorded search {entry.id} for {entry.query_text!r}")
    except Exception as e:
        logger.error(f"Failed to record search history: {str(e)}")


@shared_task(name="app.search.tasks.purge_anonymous_search_history")
def purge_anonymous_search_history(retention_days: int = None):
    """Delete anonymous searches older than the retention window"""
    if retention_days is None:
        retention_days = current_app.config.get("SEARCH_HISTORY_RETENTION_DAYS", 30)
    cutoff = datetime.utcnow() - timedelta(days=retention_days)

    try:
        with session_scope() as session:
            deleted = SearchHistory.purge_anonymous(session, cutoff)
        logger.info(f"Purged {deleted} anonymous search history entries")
        return deleted
    except Exception as e:
        logger.error(f"Search history purge failed: {str(e)}")
        raise
