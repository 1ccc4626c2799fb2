"""
Production entry point, e.g. ``gunicorn wsgi:application``.
"""
from frontdesk import create_app

application = create_app()
