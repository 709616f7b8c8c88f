"""
Shipping Celery Tasks for Papelería Santiago
============================================
Asynchronous notifications about shipping pricing changes.
"""

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
import logging

logger = logging.getLogger(__name__)

PRICING_CHANGE_MESSAGES = {
    'config': 'The global shipping configuration has been updated.',
    'import': 'Shipping zones and rates have been imported from a workbook.',
}


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={'max_retries': 3},
    name='shipping.notify_pricing_updated'
)
def notify_pricing_updated_task(self, reason: str = 'config'):
    """
    E-mail all active staff users that shipping pricing changed.

    Args:
        reason: 'config' or 'import'
    """
    User = get_user_model()
    recipients = list(
        User.objects.filter(is_staff=True, is_active=True)
        .exclude(email='')
        .values_list('email', flat=True)
    )

    if not recipients:
        logger.info("No staff recipients for shipping pricing notification")
        return {'status': 'skipped', 'sent': 0}

    send_mail(
        subject=f"[{settings.SITE_NAME}] Shipping rates updated",
        message=PRICING_CHANGE_MESSAGES.get(reason, PRICING_CHANGE_MESSAGES['config']),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=recipients,
        fail_silently=False,
    )

    logger.info(f"Shipping pricing notification ({reason}) sent to {len(recipients)} staff users")
    return {'status': 'success', 'sent': len(recipients)}
