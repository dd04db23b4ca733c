"""Target Group Provisioner Flask Application Factory

Exposes the DB proxy target group create handler over HTTP and runs
scheduled provisioning attempts in the background.
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from redis import Redis

from targetgroup.config import get_config
from targetgroup.services.provisioning import (
    ControlPlaneClient,
    ProvisioningScheduler,
    StepSettings,
    get_control_plane_client,
)
from targetgroup.services.state_store import ResumeStateStore


def _configure_logging(app: Flask) -> None:
    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format=app.config['LOG_FORMAT'],
    )


def _init_control_plane_client(app: Flask) -> ControlPlaneClient:
    credentials = {}
    if app.config.get('AWS_ACCESS_KEY_ID') and app.config.get('AWS_SECRET_ACCESS_KEY'):
        credentials = {
            'aws_access_key_id': app.config['AWS_ACCESS_KEY_ID'],
            'aws_secret_access_key': app.config['AWS_SECRET_ACCESS_KEY'],
        }
    return get_control_plane_client('aws', {
        'credentials': credentials,
        'region': app.config['AWS_REGION'],
    })


def create_app(
    config_name='development',
    control_plane_client: Optional[ControlPlaneClient] = None,
    redis_client: Optional[Redis] = None,
):
    """
    Application factory function for the target group provisioner.

    Args:
        config_name: Configuration environment ('development', 'testing', 'production')
        control_plane_client: Client to use instead of the AWS one
        redis_client: Redis client to use instead of one built from REDIS_URL

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    _configure_logging(app)

    if control_plane_client is None:
        control_plane_client = _init_control_plane_client(app)
    if redis_client is None:
        redis_client = Redis.from_url(
            app.config['REDIS_URL'],
            socket_connect_timeout=app.config['REDIS_SOCKET_CONNECT_TIMEOUT'],
            socket_timeout=app.config['REDIS_SOCKET_TIMEOUT'],
        )

    store = ResumeStateStore(redis_client, app.config['RESUME_STATE_TTL_SECONDS'])
    app.extensions['redis'] = redis_client
    app.extensions['targetgroup.client'] = control_plane_client
    app.extensions['targetgroup.scheduler'] = ProvisioningScheduler(
        control_plane_client,
        StepSettings.from_config(app.config),
        store,
    )

    if app.config['SCHEDULER_ENABLED']:
        from targetgroup.extensions import scheduler
        if not scheduler.running:
            scheduler.start()
        app.extensions['apscheduler'] = scheduler

    from targetgroup.api.errors import register_error_handlers
    from targetgroup.api.v1 import register_blueprints
    register_error_handlers(app)
    register_blueprints(app)

    # Health check route
    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'status': 'healthy',
            'service': 'targetgroup-provisioner'
        }), 200

    return app
