"""
Celery Configuration for Papelería Santiago
===========================================
Asynchronous task queue setup with Redis broker.
"""

import os
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.settings')

app = Celery('papeleria')

app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.task_routes = {
    'shipping.notify_pricing_updated': {'queue': 'email'},
}

app.conf.task_acks_late = True  # Tasks acknowledged after completion
app.conf.task_reject_on_worker_lost = True  # Requeue if worker dies
app.conf.worker_prefetch_multiplier = 1


@app.task(name='celery.ping')
def ping():
    """Health check task to verify Celery is running."""
    return 'pong'
