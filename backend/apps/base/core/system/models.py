"""
Base Models for Papelería Santiago
==================================
Abstract base classes that provide common functionality for all models.
"""

import uuid
from django.db import models
from django.utils.translation import gettext_lazy as _


class TimeStampedModel(models.Model):
    """
    Abstract base model with created/updated timestamps.
    All models should inherit from this for audit purposes.
    """
    created_at = models.DateTimeField(
        _('Created at'),
        auto_now_add=True,
        db_index=True
    )
    updated_at = models.DateTimeField(
        _('Updated at'),
        auto_now=True
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']


class UUIDModel(models.Model):
    """
    Abstract model that uses UUID as primary key.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    class Meta:
        abstract = True


class StatusModel(models.Model):
    """
    Abstract model for objects that can be activated/deactivated.
    """
    is_active = models.BooleanField(
        _('Is active'),
        default=True,
        db_index=True
    )

    class Meta:
        abstract = True

    def activate(self):
        """Activate the object."""
        self.is_active = True
        self.save(update_fields=['is_active', 'updated_at'])

    def deactivate(self):
        """Deactivate the object."""
        self.is_active = False
        self.save(update_fields=['is_active', 'updated_at'])
