"""
Flask Application

This is the main Flask application file that integrates:
- Service layer for progress tracking and reporting
- Blueprint system for organized routes
- Catalog seeding command for development data
"""

import os
import re
from datetime import datetime

import click
from dotenv import load_dotenv
from flask import Flask, jsonify

from extensions import cache, db, migrate
import models  # noqa: F401

# Import our services and blueprints
from services import get_catalog_loader, get_service_factory, init_services
from blueprints import get_blueprint_info, register_blueprints

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Database configuration
def _normalize_sqlite_uri(uri: str, base_dir: str) -> str:
    if not uri or not uri.startswith("sqlite:///"):
        return uri
    raw_path = uri.replace("sqlite:///", "", 1)
    # If already absolute (drive letter or leading slash), leave as-is.
    if os.path.isabs(raw_path) or re.match(r"^[A-Za-z]:[\\/]", raw_path):
        return uri
    abs_path = os.path.abspath(os.path.join(base_dir, raw_path))
    return f"sqlite:///{abs_path.replace(os.sep, '/')}"


def create_app(test_config=None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    default_db_path = os.path.join(app.instance_path, "progress.db")
    os.makedirs(app.instance_path, exist_ok=True)
    raw_db_uri = os.getenv(
        "DATABASE_URL", f"sqlite:///{default_db_path.replace(os.sep, '/')}"
    )
    app.config["SQLALCHEMY_DATABASE_URI"] = _normalize_sqlite_uri(
        raw_db_uri, app.root_path
    )
    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)
    app.json.sort_keys = False

    # App configuration
    app.secret_key = os.getenv("FLASK_KEY")
    if not app.secret_key:
        app.logger.warning(
            "FLASK_KEY not set, using a default secret key. Please set this in your .env file for production."
        )
        app.secret_key = "progress_core_default_secret_key_for_development"

    app.config.setdefault("CACHE_TYPE", os.getenv("CACHE_TYPE", "SimpleCache"))
    app.config.setdefault("CACHE_DEFAULT_TIMEOUT", int(os.getenv("CACHE_TTL", "60")))
    app.config["VIDEO_WATCHED_THRESHOLD"] = float(
        os.getenv("VIDEO_WATCHED_THRESHOLD", "95")
    )
    app.config["PARALLEL_PROGRESS_READS"] = _env_flag("PARALLEL_PROGRESS_READS", "true")
    app.config["CATALOG_DATA_PATH"] = os.getenv(
        "CATALOG_DATA_PATH", os.path.join(os.path.dirname(__file__), "data", "catalog.json")
    )

    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app)

    # Initialize services
    app.logger.debug("Initializing services...")
    init_services(os.path.dirname(app.config["CATALOG_DATA_PATH"]))

    # Register all blueprints
    register_blueprints(app)
    for name, info in get_blueprint_info().items():
        app.logger.debug("Blueprint %s: %s - %s", name, info["url_prefix"], info["description"])

    register_error_handlers(app)
    register_commands(app)

    # Health check endpoint
    @app.route("/health")
    def health_check():
        """Health check endpoint for monitoring."""
        factory = get_service_factory()
        services = factory.get_all_services()

        return jsonify(
            {
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
                "services": {name: "available" for name in services},
                "blueprint_info": get_blueprint_info(),
            }
        )

    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return jsonify({"error": "not_found", "message": "Resource not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        return jsonify({"error": "internal", "message": "Internal error"}), 500


def register_commands(app: Flask) -> None:
    @app.cli.command("seed-catalog")
    @click.argument("path", required=False)
    def seed_catalog(path):
        """Load a catalog JSON document into the database."""
        path = path or app.config["CATALOG_DATA_PATH"]
        counts = get_catalog_loader().seed_file(path)
        if counts is None:
            raise click.ClickException(f"Could not load catalog from {path}")
        for kind, count in counts.items():
            click.echo(f"{kind}: {count}")


app = create_app()


if __name__ == "__main__":
    app.logger.info("Starting progress service")
    app.logger.info("Catalog data path: %s", app.config["CATALOG_DATA_PATH"])
    app.run(debug=True, port=5001)
