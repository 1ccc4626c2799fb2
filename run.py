"""
Local development server for the front-office API.

    python run.py
"""
import os

from frontdesk import create_app

app = create_app()


if __name__ == '__main__':
    app.logger.info("Serving front desk API (storage at %s)", app.config['STORAGE_ROOT'])
    app.run(
        host=os.getenv('FLASK_HOST', '127.0.0.1'),
        port=int(os.getenv('FLASK_PORT', 5000)),
        debug=app.config.get('DEBUG', False),
    )
