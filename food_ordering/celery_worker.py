"""
Celery Worker Configuration
Sets up Celery with Redis as message broker and result backend, and the
beat schedule for the retention sweep.
"""

from celery import Celery

from food_ordering.core.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    'food_ordering_worker',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['food_ordering.tasks']  # Module containing our tasks
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,  # Process one task at a time
    worker_concurrency=4,  # Number of worker processes

    # Result settings
    result_expires=3600,  # Results expire after 1 hour

    # Task execution settings
    task_acks_late=True,  # Acknowledge task after completion
    task_reject_on_worker_lost=True,  # Requeue task if worker dies

    broker_connection_retry_on_startup=True,

    # Periodic tasks (celery -A food_ordering.celery_worker beat)
    beat_schedule={
        'sweep-completed-orders': {
            'task': 'food_ordering.tasks.sweep_completed_orders',
            'schedule': settings.sweep_interval_seconds,
        },
    },
)


if __name__ == '__main__':
    celery_app.start()
