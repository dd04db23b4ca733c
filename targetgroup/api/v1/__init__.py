"""Target group provisioner REST API v1 endpoints."""

from flask import Blueprint

from targetgroup.api.v1.target_groups import target_groups_bp


def register_blueprints(app):
    """
    Register all v1 API blueprints with the Flask application.

    Args:
        app: Flask application instance
    """
    api_v1_bp = Blueprint('api_v1', __name__, url_prefix='/api/v1')

    api_v1_bp.register_blueprint(target_groups_bp)

    app.register_blueprint(api_v1_bp)

    return api_v1_bp


__all__ = [
    'register_blueprints',
    'target_groups_bp',
]
