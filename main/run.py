from main.patching import patch_for_gevent

patch_for_gevent()

from gevent.pywsgi import WSGIServer  # noqa: E402

from main.setup import create_app  # noqa: E402
from main.config import settings  # noqa: E402
import logging  # noqa: E402

app = create_app()

if __name__ == "__main__":
    host, port = settings.BIND.split(":")
    logging.info(f"Starting Markt discovery server on {host}:{port}")

    WSGIServer((host, int(port)), app).serve_forever()
