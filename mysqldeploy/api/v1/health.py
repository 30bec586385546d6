"""Health check endpoints for mysqldeploy."""

from flask import Blueprint

from mysqldeploy.utils.api_responses import success_response

health_bp = Blueprint('health', __name__, url_prefix='/health')


@health_bp.route('', methods=['GET'])
def health_check():
    """
    Basic health check endpoint.

    Returns:
        JSON response with health status.
    """
    data = {
        'service': 'mysqldeploy',
        'status': 'healthy',
    }
    return success_response(data=data, message='Service is healthy')
