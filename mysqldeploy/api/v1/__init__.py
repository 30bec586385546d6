"""mysqldeploy REST API v1 endpoints."""

from flask import Blueprint

from mysqldeploy.api.v1.health import health_bp
from mysqldeploy.api.v1.mysql import mysql_bp


def register_blueprints(app):
    """
    Register all v1 API blueprints with the Flask application.

    Args:
        app: Flask application instance
    """
    # Create v1 API blueprint
    api_v1_bp = Blueprint('api_v1', __name__, url_prefix='/api/v1')

    # Register sub-blueprints
    api_v1_bp.register_blueprint(health_bp)
    api_v1_bp.register_blueprint(mysql_bp)

    # Register main blueprint with app
    app.register_blueprint(api_v1_bp)

    return api_v1_bp


__all__ = [
    'register_blueprints',
    'health_bp',
    'mysql_bp',
]
