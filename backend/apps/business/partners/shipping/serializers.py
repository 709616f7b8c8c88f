"""
Shipping Serializers for Papelería Santiago
===========================================
"""

import math
from decimal import Decimal

from rest_framework import serializers
from django.utils.translation import gettext_lazy as _

from apps.base.core.system.exceptions import ErrorMessages
from .models import ShippingCity, ShippingZone, ShippingRate, ShippingConfig
from .utils import parse_province_list


class ShippingConfigSerializer(serializers.ModelSerializer):
    """Serializer for the global fallback config."""

    class Meta:
        model = ShippingConfig
        fields = [
            'id',
            'base_rate',
            'rate_per_km',
            'rate_per_kg',
            'iva_rate',
            'is_active',
            'updated_at'
        ]
        read_only_fields = ['id', 'updated_at']


class ShippingZoneSerializer(serializers.ModelSerializer):
    """Serializer for shipping zones."""

    provinces = serializers.ListField(
        child=serializers.CharField(max_length=100, allow_blank=True),
        required=False
    )
    rate_count = serializers.SerializerMethodField()

    class Meta:
        model = ShippingZone
        fields = [
            'id',
            'name',
            'provinces',
            'multiplier',
            'is_active',
            'rate_count'
        ]
        read_only_fields = ['id']

    def get_rate_count(self, obj) -> int:
        return obj.rates.filter(is_active=True).count()

    def validate_provinces(self, value):
        return parse_province_list(value)


class ShippingRateSerializer(serializers.ModelSerializer):
    """Serializer for weight-banded zone rates."""

    zone_name = serializers.CharField(source='zone.name', read_only=True)

    class Meta:
        model = ShippingRate
        fields = [
            'id',
            'zone',
            'zone_name',
            'min_weight',
            'max_weight',
            'price',
            'is_active'
        ]
        read_only_fields = ['id', 'zone']

    def validate(self, attrs):
        min_weight = attrs.get('min_weight', getattr(self.instance, 'min_weight', 0))
        max_weight = attrs.get('max_weight', getattr(self.instance, 'max_weight', None))

        if max_weight is not None and min_weight is not None and min_weight > max_weight:
            raise serializers.ValidationError({
                'max_weight': ErrorMessages.INVALID_WEIGHT_RANGE
            })

        return attrs


class ShippingCitySerializer(serializers.ModelSerializer):
    """Serializer for per-city overrides."""

    class Meta:
        model = ShippingCity
        fields = [
            'id',
            'name',
            'province',
            'distance_km',
            'is_custom_rate',
            'custom_price',
            'latitude',
            'longitude'
        ]
        read_only_fields = ['id']


class CalculateShippingSerializer(serializers.Serializer):
    """Serializer for shipping calculation request."""

    province = serializers.CharField(
        max_length=100,
        help_text='Destination province or city name'
    )
    weight = serializers.FloatField(
        min_value=0,
        help_text='Total weight in kg'
    )

    def validate_weight(self, value):
        if not math.isfinite(value):
            raise serializers.ValidationError(_('Weight must be a finite number'))
        return Decimal(str(value))


class ShippingCostSerializer(serializers.Serializer):
    """Serializer for shipping calculation result."""

    cost = serializers.FloatField()


class ShippingQuoteSerializer(serializers.Serializer):
    """Serializer for a shipping cost breakdown."""

    location = serializers.CharField()
    normalized_location = serializers.CharField(allow_blank=True)
    weight = serializers.FloatField()
    cost = serializers.FloatField()
    applied_rule = serializers.CharField()
    city = serializers.CharField(allow_null=True)
    zone = serializers.CharField(allow_null=True)
    rate = serializers.CharField(allow_null=True)
    distance_km = serializers.FloatField()
    distance_cost = serializers.FloatField()
    weight_cost = serializers.FloatField()


class ImportShippingRatesSerializer(serializers.Serializer):
    """Serializer for the rates workbook upload."""

    file = serializers.FileField()

    def validate_file(self, value):
        if not value.name.lower().endswith('.xlsx'):
            raise serializers.ValidationError(
                _('Only .xlsx workbooks are supported')
            )
        return value


class ImportShippingRatesResultSerializer(serializers.Serializer):

    imported_zones = serializers.IntegerField()
    imported_rates = serializers.IntegerField()
