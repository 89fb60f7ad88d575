import os
from pathlib import Path
from typing import Optional, Union

from flask import Flask
from .routes import bp as routes_bp
from .settings import load_settings

# Bind only localhost unless overridden
BIND = os.environ.get("BIND", "127.0.0.1")
PORT = int(os.environ.get("PORT", "5000"))


def create_app(settings_file: Optional[Union[str, Path]] = None) -> Flask:
    app = Flask(__name__)
    app.config["APP_TITLE"] = "Steam Crawler"
    app.config["SETTINGS_FILE"] = str(settings_file) if settings_file else None
    app.config["CRAWLER_SETTINGS"] = load_settings(Path(settings_file) if settings_file else None)

    app.register_blueprint(routes_bp)
    return app
