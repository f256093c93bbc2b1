"""Celery task definitions for async processing."""

import logging

from celery import Celery

from sprinter.config import settings

logging.getLogger("sprinter").setLevel(settings.log_level.upper())

celery_app = Celery(
    "sprinter",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    enable_utc=True,
)

# Import tasks so they get registered
from sprinter.tasks.day_end_tasks import *  # noqa
