#!/usr/bin/env python3
"""
Discovery server with gevent monkey patching.

Patching must happen before any other import so that database and Redis
sockets cooperate with the greenlets used to fan out search lookups.
"""

# IMPORTANT: Apply gevent patching FIRST, before any other imports
from main.patching import patch_for_gevent
patch_for_gevent()

# Now it's safe to import everything else
from gevent.pywsgi import WSGIServer  # noqa: E402

from main.setup import create_app  # noqa: E402
from main.config import settings  # noqa: E402
import logging  # noqa: E402


def serve(app):
    host, port = settings.BIND.split(":")
    logging.info(f"Starting Markt discovery server on {host}:{port}")

    WSGIServer((host, int(port)), app).serve_forever()


if __name__ == "__main__":
    serve(create_app())
