"""
Per-request hooks: access logging for the API and response hardening.
"""
import logging
import time

from flask import g, request

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 2.0

SECURITY_HEADERS = {
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


def setup_middleware(app):

    @app.before_request
    def start_timer():
        g.request_started = time.monotonic()

    @app.after_request
    def finish_request(response):
        started = g.pop('request_started', None)
        if started is not None and request.path.startswith('/api/'):
            elapsed = time.monotonic() - started
            level = logging.WARNING if elapsed > SLOW_REQUEST_SECONDS else logging.INFO
            logger.log(level, "%s %s -> %s (%.0f ms)",
                       request.method, request.path, response.status_code, elapsed * 1000)

        if app.debug:
            return response
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response
