from flask import jsonify
from werkzeug.exceptions import HTTPException
import logging
from app.libs.errors import APIError

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
}


def handle_error(e):
    if isinstance(e, APIError):
        if e.status_code >= 500:
            logger.error(f"API Error: {e.message}")
        else:
            logger.info(f"API Error: {e.message}")
        return jsonify(e.to_dict()), e.status_code
    elif isinstance(e, HTTPException):
        logger.info(f"HTTP Error: {e.description}")
        body = {
            "success": False,
            "message": e.description,
            "error": HTTP_ERROR_CODES.get(e.code, "HTTP_ERROR"),
        }
        # webargs puts the field errors of rejected arguments on `data`
        messages = (getattr(e, "data", None) or {}).get("messages")
        if messages:
            body["errors"] = messages
        # Argument errors are client errors, reported as 400 like other validation failures
        status = 400 if e.code == 422 else e.code
        return jsonify(body), status
    else:
        logger.exception("Unhandled exception")
        return (
            jsonify(
                {
                    "success": False,
                    "message": "Internal server error",
                    "error": "INTERNAL_SERVER_ERROR",
                }
            ),
            500,
        )
