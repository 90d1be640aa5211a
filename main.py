import os
import sys
import time
import signal
import logging
import threading
from datetime import timedelta
from flask import Flask, render_template, request, g
from dotenv import load_dotenv
from flasgger import Swagger
from werkzeug.serving import make_server

# Load environment variables from .env file
load_dotenv()

# --- App Imports ---
from env_manager import config
from env_manager.auth import auth_bp, login_required, init_auth, check_fixed_credentials
from env_manager.api_routes import api_bp, init_api
from env_manager.database import EnvVarManager
from env_manager.errors import InfrastructureError
from env_manager.logging_utils import log_request, log_response
from env_manager.sessions import SessionStore

# --- Logging Configuration ---
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

# --- Swagger Configuration ---
swagger_config = {
    "headers": [],
    "specs": [
        {
            "endpoint": 'apispec',
            "route": '/apispec.json',
            "rule_filter": lambda rule: rule.rule.startswith('/api/'),
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/api-docs/"
}

swagger_template = {
    "swagger": "2.0",
    "info": {
        "title": "Environment Variable Manager API",
        "description": "RESTful API for managing environment variables. **Note:** You must be logged in to test the APIs. Please login at `/login` first.",
        "version": "1.0.0"
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "SessionAuth": {
            "type": "apiKey",
            "name": "session",
            "in": "cookie",
            "description": "Session-based authentication. Login at /login to get a session cookie."
        }
    },
    "security": [
        {
            "SessionAuth": []
        }
    ]
}


def open_env_var_manager(db_path=None):
    """Open the database, or return None so the app can start in degraded mode."""
    db_path = db_path or config.DB_PATH
    try:
        manager = EnvVarManager(db_path)
    except (InfrastructureError, OSError) as e:
        logging.error(f"Database connection error: {e}")
        return None
    logging.info(f"Connected to SQLite database at {db_path}")
    return manager


def create_app(env_var_manager=None, session_store=None, credential_check=check_fixed_credentials):
    app = Flask(
        __name__,
        template_folder=os.path.join(os.path.dirname(__file__), 'env_manager', 'templates'),
    )
    app.secret_key = config.SECRET_KEY
    app.permanent_session_lifetime = timedelta(seconds=config.SESSION_LIFETIME)
    app.config['SESSION_COOKIE_HTTPONLY'] = True

    Swagger(app, config=swagger_config, template=swagger_template)

    init_auth(app, session_store or SessionStore(config.SESSION_LIFETIME), credential_check)
    init_api(app, env_var_manager)

    # --- Register Blueprints ---
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)

    # --- Request Logging ---
    @app.before_request
    def start_request_timer():
        g.request_started = time.perf_counter()
        log_request(request.method, request.path, body=request.get_json(silent=True))

    @app.after_request
    def log_finished_request(response):
        started = g.get('request_started')
        latency_ms = int((time.perf_counter() - started) * 1000) if started else None
        log_response(response.status_code, request.method, request.path, latency_ms=latency_ms)
        return response

    # --- Dashboard Route ---
    @app.route('/')
    @login_required
    def dashboard():
        return render_template('index.html')

    return app


def serve(app, env_var_manager, host=None, port=None):
    """Run the HTTP server until SIGINT/SIGTERM, then close the database."""
    host = host or config.HOST
    port = port or config.PORT
    server = make_server(host, port, app, threaded=True)

    def handle_shutdown(signum, frame):
        logging.info(f"Received {signal.Signals(signum).name}, shutting down server...")
        # shutdown() blocks until serve_forever() returns, which runs on this thread
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    logging.info(f"Server listening on port {port}")
    logging.info(f"App: http://localhost:{port}")
    logging.info(f"Login page: http://localhost:{port}/login")
    logging.info(f"API docs: http://localhost:{port}/api-docs/")
    try:
        server.serve_forever()
    finally:
        server.server_close()
        logging.info("HTTP server closed")
        if env_var_manager is not None:
            env_var_manager.close()
    return 0


def main():
    env_var_manager = open_env_var_manager()
    app = create_app(env_var_manager)
    try:
        return serve(app, env_var_manager)
    except InfrastructureError as e:
        logging.error(f"Error while closing database: {e}")
        return 1


# --- Main Execution ---
if __name__ == '__main__':
    sys.exit(main())
