import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Logs each request line with its response status and duration"""

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        started = time.time()
        path = environ.get("PATH_INFO", "")
        if environ.get("QUERY_STRING"):
            path = f"{path}?{environ['QUERY_STRING']}"

        def _start_response(status, headers, exc_info=None):
            elapsed = (time.time() - started) * 1000
            logger.info(f"{environ['REQUEST_METHOD']} {path} {status} {elapsed:.1f}ms")
            return start_response(status, headers, exc_info)

        return self.app(environ, _start_response)
