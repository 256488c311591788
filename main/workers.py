from main.patching import patch_for_gevent

patch_for_gevent()

from main.setup import create_app  # noqa: E402


# Create Flask app and Celery with proper context
flask_app = create_app()
celery_app = flask_app.extensions["celery"]


if __name__ == "__main__":
    celery_app.start()
