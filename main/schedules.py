from celery.schedules import crontab

CELERYBEAT_SCHEDULE = {
    # Anonymous search history retention
    "purge-anonymous-search-history": {
        "task": "app.search.tasks.purge_anonymous_search_history",
        "schedule": crontab(hour="3", minute="15"),  # Daily at 3:15 AM
        "options": {"queue": "maintenance"},
    },
}
