"""
Shipping Models for Papelería Santiago
======================================
City overrides, zones, weight-banded rates and the global fallback
configuration used to price deliveries.
"""

import logging
from decimal import Decimal
from django.db import models
from django.utils.translation import gettext_lazy as _
from django.core.validators import MinValueValidator, MaxValueValidator
from apps.base.core.system.models import TimeStampedModel, UUIDModel, StatusModel

from .utils import normalize_location

logger = logging.getLogger(__name__)


# =============================================================================
# MANAGERS (configuration stores consumed by the cost resolver)
# =============================================================================

class ShippingCityManager(models.Manager):

    def find_by_name_or_province(self, normalized_name: str):
        """
        Return the city whose normalized name or province equals
        ``normalized_name``, or None.

        A name match wins over a province match. Among equal matches
        the oldest city wins.
        """
        if not normalized_name:
            return None

        # Stored names keep their original spelling, so normalization has to
        # happen here rather than in the query.
        province_match = None
        for city in self.get_queryset().order_by('created_at', 'name'):
            if normalize_location(city.name) == normalized_name:
                return city
            if province_match is None and normalize_location(city.province) == normalized_name:
                province_match = city

        return province_match


class ShippingZoneManager(models.Manager):

    def list_active(self):
        """Active zones in match order (oldest first)."""
        return list(
            self.get_queryset().filter(is_active=True).order_by('created_at', 'name')
        )


class ShippingRateManager(models.Manager):

    def find_for_weight(self, zone, weight: Decimal):
        """Active rate of ``zone`` whose band contains ``weight`` (inclusive)."""
        return self.get_queryset().filter(
            zone=zone,
            is_active=True,
            min_weight__lte=weight,
            max_weight__gte=weight
        ).order_by('min_weight', 'created_at').first()


class ShippingConfigManager(models.Manager):

    def get_canonical(self):
        return self.get_queryset().order_by('created_at').first()

    def get_or_create_default(self):
        """Return the canonical config, creating one with defaults if none exists."""
        config = self.get_canonical()
        if config is None:
            config = self.create()
            logger.info(f"Created default shipping config {config.id}")
        return config


# =============================================================================
# MODELS
# =============================================================================

class ShippingCity(UUIDModel, TimeStampedModel):
    """
    Per-location shipping override.

    Either fixes a travel distance (combined with zone pricing) or,
    with ``is_custom_rate``, bypasses computation with a flat price.
    """

    name = models.CharField(_('City name'), max_length=100, unique=True)
    province = models.CharField(_('Province'), max_length=100)

    distance_km = models.DecimalField(
        _('Distance (km)'),
        max_digits=10,
        decimal_places=2,
        default=Decimal('0'),
        validators=[MinValueValidator(0)],
        help_text=_('Approximate distance from the store')
    )

    is_custom_rate = models.BooleanField(
        _('Custom rate'),
        default=False,
        help_text=_('If set, the custom price is charged regardless of weight')
    )
    custom_price = models.DecimalField(
        _('Custom price'),
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )

    # Geolocation
    latitude = models.DecimalField(
        max_digits=10, decimal_places=7,
        null=True, blank=True
    )
    longitude = models.DecimalField(
        max_digits=10, decimal_places=7,
        null=True, blank=True
    )

    objects = ShippingCityManager()

    class Meta:
        verbose_name = _('Shipping City')
        verbose_name_plural = _('Shipping Cities')
        ordering = ['name']

    def __str__(self):
        return f'{self.name}, {self.province}'


class ShippingZone(UUIDModel, TimeStampedModel, StatusModel):
    """
    Group of provinces sharing a per-kilometer rate.
    Matching is by province-name membership; zones own no cities.
    """

    name = models.CharField(_('Zone name'), max_length=100, unique=True)

    provinces = models.JSONField(
        _('Provinces'),
        default=list,
        blank=True,
        help_text=_('Province or city names belonging to this zone')
    )

    multiplier = models.DecimalField(
        _('Cost per km'),
        max_digits=10,
        decimal_places=4,
        default=Decimal('0'),
        validators=[MinValueValidator(0)]
    )

    objects = ShippingZoneManager()

    class Meta:
        verbose_name = _('Shipping Zone')
        verbose_name_plural = _('Shipping Zones')
        ordering = ['name']

    def __str__(self):
        return self.name

    def covers(self, *normalized_names) -> bool:
        """True if any province of this zone normalizes to one of the given names."""
        targets = {name for name in normalized_names if name}
        return any(normalize_location(p) in targets for p in self.provinces or [])


class ShippingRate(UUIDModel, TimeStampedModel, StatusModel):
    """
    Weight-banded base price within a zone.
    Bands of one zone are expected not to overlap; this is not enforced.
    """

    zone = models.ForeignKey(
        ShippingZone,
        on_delete=models.CASCADE,
        related_name='rates'
    )

    min_weight = models.DecimalField(
        _('Min weight (kg)'),
        max_digits=10,
        decimal_places=3,
        default=Decimal('0'),
        validators=[MinValueValidator(0)]
    )
    max_weight = models.DecimalField(
        _('Max weight (kg)'),
        max_digits=10,
        decimal_places=3,
        validators=[MinValueValidator(0)]
    )
    price = models.DecimalField(
        _('Price'),
        max_digits=10,
        decimal_places=2,
        default=Decimal('0'),
        validators=[MinValueValidator(0)]
    )

    objects = ShippingRateManager()

    class Meta:
        verbose_name = _('Shipping Rate')
        verbose_name_plural = _('Shipping Rates')
        ordering = ['zone', 'min_weight']

    def __str__(self):
        return f'{self.zone.name}: {self.min_weight}-{self.max_weight} kg (${self.price})'


class ShippingConfig(UUIDModel, TimeStampedModel):
    """
    Global fallback pricing, used when no city or zone matches.
    The oldest row is canonical.
    """

    base_rate = models.DecimalField(
        _('Base rate'),
        max_digits=10,
        decimal_places=2,
        default=Decimal('2.50'),
        validators=[MinValueValidator(0)]
    )
    rate_per_km = models.DecimalField(
        _('Rate per km'),
        max_digits=10,
        decimal_places=4,
        default=Decimal('0.35'),
        validators=[MinValueValidator(0)]
    )
    rate_per_kg = models.DecimalField(
        _('Rate per kg'),
        max_digits=10,
        decimal_places=4,
        default=Decimal('0.25'),
        validators=[MinValueValidator(0)]
    )
    iva_rate = models.DecimalField(
        _('IVA rate'),
        max_digits=5,
        decimal_places=4,
        default=Decimal('0.15'),
        validators=[MinValueValidator(0), MaxValueValidator(1)]
    )
    is_active = models.BooleanField(_('Active'), default=True)

    objects = ShippingConfigManager()

    class Meta:
        verbose_name = _('Shipping Config')
        verbose_name_plural = _('Shipping Config')
        ordering = ['created_at']

    def __str__(self):
        status = 'active' if self.is_active else 'inactive'
        return f'Shipping config ({status})'
