"""Virtual forest: spend streak coins on trees that grow over time."""

import logging

from flask import Flask, jsonify, make_response, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from forest.config import Config, allowed_origins, db_config
from forest.errors import ForestError, UpstreamStoreError
from forest.jobs import init_scheduler
from forest.settlement import BASELINE_POLICIES
from forest.store import mysql_connector
from forest.trees import utcnow

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ['GET', 'POST', 'OPTIONS']
INTERNAL_ERROR_MESSAGE = 'An internal server error occurred.'


def create_app(config=None, connect=None, clock=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)
    app.config['SESSION_COOKIE_NAME'] = app.config['FOREST_SESSION_COOKIE']

    if app.config['FOREST_NEGATIVE_BASELINE'] not in BASELINE_POLICIES:
        raise ValueError(f"FOREST_NEGATIVE_BASELINE must be one of {BASELINE_POLICIES}")
    if app.config['FOREST_TREE_COST'] <= 0:
        raise ValueError('FOREST_TREE_COST must be positive')

    app.extensions['forest'] = {
        'connect': connect or mysql_connector(db_config(app.config)),
        'clock': clock or utcnow,
    }

    CORS(
        app,
        resources={r'/api/.*': {'origins': allowed_origins(app.config)}},
        supports_credentials=True,
        methods=ALLOWED_METHODS,
        allow_headers=['Content-Type'],
    )

    from forest.views import bp
    app.register_blueprint(bp)
    register_error_handlers(app)
    init_scheduler(app)
    return app


def register_error_handlers(app):
    @app.errorhandler(ForestError)
    def handle_forest_error(e):
        if isinstance(e, UpstreamStoreError):
            logger.error('Forest API Error: %s', e, exc_info=e)
            return jsonify(success=False, message=INTERNAL_ERROR_MESSAGE), 500
        return jsonify(success=False, message=e.message), e.status_code

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        methods = [m for m in ALLOWED_METHODS if m in (e.valid_methods or ALLOWED_METHODS)]
        response = make_response(f'Method {request.method} Not Allowed', 405)
        response.headers['Allow'] = ', '.join(methods)
        return response

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception('Forest API Error')
        return jsonify(success=False, message=INTERNAL_ERROR_MESSAGE), 500
