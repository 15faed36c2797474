"""Blueprints Package

Registers the application's route blueprints.
"""

from typing import Dict

from blueprints.api_routes import api_bp

BLUEPRINTS = {
    "api": {
        "blueprint": api_bp,
        "url_prefix": "/api",
        "description": "Progress tracking, attempts and reports",
    },
}


def register_blueprints(app) -> None:
    """Register every blueprint on ``app``."""
    for name, info in BLUEPRINTS.items():
        app.register_blueprint(info["blueprint"])
        app.logger.debug("Registered blueprint %s at %s", name, info["url_prefix"])


def get_blueprint_info() -> Dict[str, Dict[str, str]]:
    return {
        name: {"url_prefix": info["url_prefix"], "description": info["description"]}
        for name, info in BLUEPRINTS.items()
    }
