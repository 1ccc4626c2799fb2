#!/usr/bin/env python3
"""
Background worker for agreement PDF rendering.

    celery -A celery_worker.celery worker --loglevel=info
"""
import os

from frontdesk import create_app
from frontdesk.extensions import celery

app = create_app()

from tasks import pdf_tasks  # noqa: E402,F401

if __name__ == '__main__':
    celery.worker_main(['worker', '--loglevel=info',
                        f"--concurrency={os.getenv('CELERY_CONCURRENCY', '2')}"])
