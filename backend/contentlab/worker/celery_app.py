"""
Celery application for background pipeline runs.

Broker/backend: Redis (REDIS_URL env).
Default queue: pipeline.
"""
from celery import Celery

from contentlab.settings import get_settings

settings = get_settings()

celery_app = Celery(
    "contentlab",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_time_limit=2 * 3600,
    task_soft_time_limit=int(1.5 * 3600),
    task_default_queue="pipeline",
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # visibility_timeout must exceed task_time_limit or long runs get redelivered
    broker_transport_options={"visibility_timeout": 3 * 3600},
)

celery_app.autodiscover_tasks(["contentlab.worker"])
