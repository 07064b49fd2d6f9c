"""
Development server entry point.

    contentdesk            # runs on PORT (default 5000)
"""

import logging

from flask import Flask

from . import ContentDesk
from .core import Config


def create_app(config_overrides=None):
    logging.basicConfig(
        level=getattr(logging, str(Config.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    app = Flask(__name__)
    if config_overrides:
        app.config.update(config_overrides)

    ContentDesk(app)
    return app


def main():
    app = create_app()
    port = app.config['PORT']

    print("\n" + "=" * 60)
    print("ContentDesk API")
    print("=" * 60)
    print(f"API:     http://localhost:{port}/api")
    print(f"Health:  http://localhost:{port}/api/health")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=port, debug=app.config.get('DEBUG', False))


if __name__ == '__main__':
    main()
