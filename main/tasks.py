from celery import Celery, Task
from flask import Flask


def create_celery_app(app: Flask) -> Celery:
    class ContextTask(Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery = Celery(app.import_name, task_cls=ContextTask)
    celery.conf.update(
        broker_url=app.config["CELERY_BROKER_URL"],
        result_backend=app.config["CELERY_RESULT_BACKEND"],
        task_always_eager=app.config["CELERY_ALWAYS_EAGER"],
        task_ignore_result=True,
        timezone="UTC",
    )
    # An unreachable broker must fail fast instead of stalling the request
    celery.conf.task_publish_retry = False
    celery.set_current()
    celery.set_default()
    app.extensions["celery"] = celery

    # Auto-discover tasks from modules
    celery.autodiscover_tasks(
        [
            "app.search",
            # add more task packages here
        ]
    )

    # Import and apply beat schedule
    from main.schedules import CELERYBEAT_SCHEDULE

    celery.conf.beat_schedule = CELERYBEAT_SCHEDULE

    # Explicit task routing
    celery.conf.task_routes = {
        "app.search.tasks.record_search": {"queue": "search"},
        "app.search.tasks.purge_anonymous_search_history": {"queue": "maintenance"},
    }

    return celery
