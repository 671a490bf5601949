# UniStack API - Flask application
# A single action endpoint plus a health check

from datetime import datetime, timezone

import click
from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from unistack.actions import dispatch
from unistack.config import load_config
from unistack.db import init_schema
from unistack.logging_setup import configure_logging
from unistack.store import PostgresStore


def create_app(config=None, store=None):
    """Build the Flask app; tests pass their own config overrides and store"""
    app = Flask(__name__)
    app.config.update(load_config())
    if config:
        app.config.update(config)

    configure_logging(app.config['LOG_LEVEL'])

    CORS(app, origins=[app.config['ALLOWED_ORIGIN']], supports_credentials=True)

    app.extensions['unistack_store'] = store or PostgresStore(app.config['DATABASE_URL'])

    register_routes(app)
    register_commands(app)
    return app


def get_store():
    return current_app.extensions['unistack_store']


def register_routes(app):

    @app.route('/', methods=['GET', 'POST'])
    @app.route('/server.php', methods=['GET', 'POST'])
    def handle_action():
        """
        Action Endpoint

        Read actions come as a query string (?action=getQuestions&tag=...),
        everything else as a JSON body {action, ...fields}. The response is
        always a 200 JSON envelope; failures carry success: false.
        """
        if request.method == 'GET':
            payload = request.args.to_dict()
        else:
            payload = request.get_json(silent=True) or {}
            if isinstance(payload, dict) and not payload.get('action') and request.args.get('action'):
                payload = {**request.args.to_dict(), **payload}

        result = dispatch(
            get_store(),
            current_app.config,
            request.method,
            payload,
            authorization=request.headers.get('Authorization')
        )
        return jsonify(result), 200

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'service': 'UniStack API'
        }), 200

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'message': 'Endpoint not found', 'error': 'not_found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'message': 'Method not allowed', 'error': 'invalid_action'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({'success': False, 'message': 'Internal server error', 'error': 'internal_error'}), 500


def register_commands(app):

    @app.cli.command('init-db')
    def init_db_command():
        """Create the UniStack tables."""
        init_schema(current_app.config['DATABASE_URL'])
        click.echo('Initialized the database.')


app = create_app()

if __name__ == '__main__':
    app.run(debug=True)
