from celery import Celery
from celery.schedules import crontab
from hrms.core.config import settings
import sys

# Create Celery app
celery_app = Celery(
    "hrms_backend",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "hrms.workers.celery_tasks.leave_tasks",
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
    "run-monthly-leave-accrual": {
        "task": "hrms.workers.celery_tasks.leave_tasks.run_monthly_leave_accrual",
        "schedule": crontab(minute=0, hour=1, day_of_month=1),  # 01:00 on the 1st
    },
}
