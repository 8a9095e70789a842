"""
API gateway: serves the front-end and combines the upload and metrics blueprints.
This is the entrypoint for local runs and deployments.
"""

from flask import Flask, jsonify
from flask_cors import CORS
import os
import logging
import sys
from typing import Optional

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
PUBLIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "public")

# Allows 'python backend/gateway/server.py' to resolve 'backend.*' imports
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from backend.ai_service.client import GeminiDescriber, ImageDescriber, StubDescriber, build_prompt
from backend.ai_service.routes import create_upload_blueprint
from backend.gateway.config import ConfigurationError, Settings, load_settings
from backend.metrics_service.registry import NullMetrics, UploadMetrics
from backend.metrics_service.routes import create_metrics_blueprint, install_request_timer


def build_describer(settings: Settings) -> ImageDescriber:
    """
    Pick the describer for the runtime mode.

    Raises:
        Exception: Whatever the SDK raises while constructing the client.
    """
    if settings.is_test:
        logging.info("Test mode: using the stub describer.")
        return StubDescriber()
    return GeminiDescriber(
        project=settings.google_cloud_project,
        location=settings.google_cloud_location,
        model=settings.gemini_model,
        timeout_seconds=settings.ai_timeout_seconds,
    )


def build_metrics(settings: Settings):
    if settings.is_test:
        logging.info("Test mode: metrics are disabled.")
        return NullMetrics()
    return UploadMetrics()


def create_app(
    settings: Optional[Settings] = None,
    describer: Optional[ImageDescriber] = None,
    metrics=None,
) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        settings (Settings, optional): Loaded from the environment when omitted.
        describer (ImageDescriber, optional): Overrides the mode's describer.
        metrics (optional): Overrides the mode's metrics store.

    Returns:
        Flask: The configured Flask application.
    """
    if settings is None:
        settings = load_settings()
    logging.info(f"Running in '{settings.app_env}' mode.")

    if describer is None:
        describer = build_describer(settings)
    if metrics is None:
        metrics = build_metrics(settings)

    app = Flask(__name__, static_folder=PUBLIC_DIR, static_url_path="/static")
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes
    app.config["SETTINGS"] = settings

    CORS(app, resources={
        r"/*": {
            "origins": list(settings.cors_origins),
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type"],
        }
    })

    install_request_timer(app, metrics)

    # --- REGISTER BLUEPRINTS ---
    prompt = build_prompt(settings.description_language)
    app.register_blueprint(create_upload_blueprint(describer, metrics, prompt))
    app.register_blueprint(create_metrics_blueprint(metrics))
    logging.info("All blueprints registered successfully.")

    # --- FRONT-END & HEALTH ---
    @app.route("/")
    def index():
        """
        Serve the bundled upload page.
        """
        return app.send_static_file("index.html")

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    return app


def main() -> None:
    try:
        settings = load_settings()
        app = create_app(settings)
    except ConfigurationError as e:
        logging.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except Exception as e:
        logging.error(f"Failed to initialize the Vertex AI client: {e}")
        sys.exit(1)

    logging.info(f"Server listening on http://localhost:{settings.port}")
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
