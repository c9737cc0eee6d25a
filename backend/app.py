import os
import logging
from flask import Flask
from flask_cors import CORS

from routes.matching import matching_bp

DEFAULT_CONFIG = {
    'SIMILARITY_THRESHOLD': 0.90,
    'ENABLE_PBLANC_SEQ': False,
    'MIN_MATCH_SCORE': 40,
    'MATCH_LIMIT': 50,
    'LOG_LEVEL': 'INFO',
}

ENV_PREFIX = 'MATCHING_'


def _from_env(key: str, default):
    """Read MATCHING_<KEY>, converted to the type of the default."""
    raw = os.environ.get(ENV_PREFIX + key)
    if raw is None:
        return default
    if isinstance(default, bool):
        return raw.strip().lower() in ('1', 'true', 'yes', 'on')
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def create_app(config: dict = None) -> Flask:
    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes

    app.config.update({key: _from_env(key, value) for key, value in DEFAULT_CONFIG.items()})
    if config:
        app.config.update(config)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    app.register_blueprint(matching_bp)
    app.logger.info(
        f"Matching API ready (threshold={app.config['SIMILARITY_THRESHOLD']}, "
        f"pblancSeq={app.config['ENABLE_PBLANC_SEQ']})"
    )
    return app


if __name__ == '__main__':
    create_app().run(debug=True, port=int(os.environ.get('PORT', 5000)))
