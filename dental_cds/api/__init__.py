"""Flask JSON API for the clinical rules engine."""

from flask import Flask

from ..services import ClinicalServices, build_services
from .routes import api_bp


def create_app(services: ClinicalServices | None = None, store=None) -> Flask:
    """Create the API application.

    Args:
        services: Pre-built component graph. Built from the packaged
            dataset when omitted.
        store: Cache store used when ``services`` is built here.
    """
    app = Flask(__name__)
    app.extensions["dental_cds"] = services or build_services(store=store)
    app.register_blueprint(api_bp)
    return app


__all__ = ["create_app", "api_bp"]
