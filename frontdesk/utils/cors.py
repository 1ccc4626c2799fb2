"""
Cross-origin access for the front-office web client.
"""
from flask_cors import CORS

ALLOWED_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']
# Content-Disposition carries the PDF filename on downloads
EXPOSED_HEADERS = ['Content-Type', 'Content-Disposition']


def init_cors(app):
    origins = app.config.get('CORS_ORIGINS') or '*'
    shared = {'origins': origins}
    CORS(
        app,
        resources={r'/api/*': shared, r'/storage/*': shared},
        methods=ALLOWED_METHODS,
        allow_headers=['Authorization', 'Content-Type', 'Accept'],
        expose_headers=EXPOSED_HEADERS,
        supports_credentials=origins != '*',
        max_age=24 * 3600,
    )
    app.logger.info("CORS origins: %s", origins)
