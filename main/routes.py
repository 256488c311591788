from importlib import import_module
import logging

logger = logging.getLogger(__name__)

# Packages under `app` exposing a flask-smorest `bp` in their routes module
BLUEPRINT_MODULES = ("search", "health")


def register_blueprints(app, api):
    """Register the blueprint of every discovery module with the API"""
    for module in BLUEPRINT_MODULES:
        bp = import_module(f"app.{module}.routes").bp
        api.register_blueprint(bp)
        logger.info(f"Registered blueprint {bp.name} at {bp.url_prefix}")


def create_root_routes(app):
    @app.route("/status")
    def status():
        return {
            "status": "running",
            "environment": app.config.get("ENV", "development"),
            "api_version": app.config.get("API_VERSION"),
        }
