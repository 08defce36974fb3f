from celery import Celery
from app.core.config import settings
import sys

# Create Celery app
celery_app = Celery(
    "outlet_ops_backend",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.workers.celery_tasks.checklist_tasks",
    ]
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
)

# Windows-specific configuration
if sys.platform == 'win32':
    celery_app.conf.update(
        worker_pool='threads',
        worker_concurrency=4
    )

celery_app.conf.beat_schedule = {
    "refresh-checklist-snapshot": {
        "task": "app.workers.celery_tasks.checklist_tasks.refresh_checklist_snapshot",
        "schedule": settings.CHECKLIST_REFRESH_SECONDS,  # Every 5 minutes by default
    },
}
