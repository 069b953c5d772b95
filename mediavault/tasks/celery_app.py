from celery import Celery
from celery.schedules import crontab

from mediavault.app.config import settings

# Create Celery instance and include explicit task modules
celery_app = Celery(
    'mediavault',
    include=[
        'mediavault.tasks.workers.trash_worker',
    ]
)

celery_app.conf.update(
    broker_url=settings.CELERY_BROKER_URL,
    result_backend=settings.CELERY_RESULT_BACKEND,
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes hard limit
)

celery_app.conf.beat_schedule = {
    'purge-trash-daily': {
        'task': 'tasks.purge_trash',
        'schedule': crontab(hour=3, minute=0),
    },
    'purge-tombstones-daily': {
        'task': 'tasks.purge_tombstones',
        'schedule': crontab(hour=3, minute=30),
    },
}
