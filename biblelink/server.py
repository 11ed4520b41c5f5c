import logging
import os

from flask import Flask

from biblelink.core import config
from biblelink.routes.references_api import references_bp


def create_app(data_path: str = None) -> Flask:
    app = Flask(__name__)

    # Where bible_data.json lives
    app.config["BIBLELINK_DATA_PATH"] = data_path or config.DATA_PATH

    # Register blueprints
    app.register_blueprint(references_bp)

    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    app.run(host="127.0.0.1", port=int(os.getenv("BIBLELINK_PORT", "5056")))
