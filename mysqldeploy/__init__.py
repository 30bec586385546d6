"""mysqldeploy Flask Application Factory

This module provides a Flask application factory exposing the MySQL
compose/deploy API. The WSGI entry point lives in wsgi.py.
"""

import logging

from flask import Flask

from mysqldeploy.config import get_config

__version__ = "0.1.0"


def create_app(config_name='development'):
    """
    Application factory function for mysqldeploy.

    Args:
        config_name: Configuration environment ('development', 'testing', 'production')

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format=app.config['LOG_FORMAT'],
    )

    from mysqldeploy.api.errors import register_error_handlers
    from mysqldeploy.api.v1 import register_blueprints

    register_error_handlers(app)
    register_blueprints(app)

    # Version route
    @app.route('/api/version', methods=['GET'])
    def version():
        """Version endpoint"""
        return {'version': __version__}, 200

    return app
