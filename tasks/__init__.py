"""
Celery tasks module
Import all tasks here so Celery can discover them
"""
from . import pdf_tasks

__all__ = ['pdf_tasks']
