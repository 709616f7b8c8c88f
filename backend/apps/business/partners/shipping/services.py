"""
Shipping Service for Papelería Santiago
=======================================
Shipping cost resolution from layered configuration (city overrides,
zone/rate tables, global fallback) plus pricing administration.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, Optional
from zipfile import BadZipFile
from django.conf import settings
from django.db import transaction
import logging

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from apps.base.core.system.exceptions import ShippingImportError, ErrorMessages
from apps.base.core.system.security import sanitize_for_logging, sanitize_filename
from .models import ShippingCity, ShippingZone, ShippingRate, ShippingConfig
from .utils import normalize_location, parse_province_list

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary amount half-up to cents."""
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class AppliedRule:
    """Which configuration source produced a shipping cost."""

    CUSTOM_CITY = 'custom_city'
    ZONE = 'zone'
    GLOBAL_FALLBACK = 'global_fallback'
    SHIPPING_DISABLED = 'shipping_disabled'


# =============================================================================
# COST RESOLVER
# =============================================================================

class ShippingCostResolver:
    """
    Resolve a shipping cost for a destination name and package weight.

    Precedence is fixed: custom-rate city, then zone pricing
    (distance * multiplier + weight band price), then the global config.
    Missing data never raises; it degrades to zero/default values.

    The four stores are injectable. By default they are the model
    managers, so every call re-queries the database.
    """

    def __init__(
        self,
        cities=None,
        zones=None,
        rates=None,
        config_provider: Optional[Callable[[], ShippingConfig]] = None
    ):
        self.cities = cities if cities is not None else ShippingCity.objects
        self.zones = zones if zones is not None else ShippingZone.objects
        self.rates = rates if rates is not None else ShippingRate.objects
        self.config_provider = config_provider or ShippingConfig.objects.get_or_create_default

    def calculate_shipping_cost(self, location_name: str, weight_kg) -> Decimal:
        """Return the shipping cost in USD for ``location_name``."""
        return self.quote(location_name, weight_kg)['cost']

    def quote(self, location_name: str, weight_kg) -> Dict[str, Any]:
        """
        Resolve the shipping cost and report how it was obtained.

        Args:
            location_name: Destination province or city, any format
            weight_kg: Package weight in kg (validated upstream)

        Returns:
            dict with cost, applied rule and the pricing components
        """
        weight = to_decimal(weight_kg)
        normalized = normalize_location(location_name)

        result = {
            'location': location_name,
            'normalized_location': normalized,
            'weight': weight,
            'cost': Decimal('0'),
            'applied_rule': None,
            'city': None,
            'zone': None,
            'rate': None,
            'distance_km': Decimal('0'),
            'distance_cost': Decimal('0'),
            'weight_cost': Decimal('0'),
        }

        # 1. City override
        city = self.cities.find_by_name_or_province(normalized)
        if city is not None:
            result['city'] = city.name
            if city.is_custom_rate:
                result['cost'] = round_money(city.custom_price or Decimal('0'))
                result['applied_rule'] = AppliedRule.CUSTOM_CITY
                self._log_quote(location_name, normalized, weight, result)
                return result
            result['distance_km'] = to_decimal(city.distance_km or 0)

        # 2. Zone lookup
        city_province = normalize_location(city.province) if city is not None else ''
        zone = self._match_zone(normalized, city_province)

        if zone is None:
            # 3. Global fallback
            config = self.config_provider()
            if not config.is_active:
                result['applied_rule'] = AppliedRule.SHIPPING_DISABLED
            else:
                result['weight_cost'] = weight * config.rate_per_kg
                result['cost'] = config.base_rate + result['weight_cost']
                result['applied_rule'] = AppliedRule.GLOBAL_FALLBACK
            self._log_quote(location_name, normalized, weight, result)
            return result

        # 4. Zone pricing
        result['zone'] = zone.name
        rate = self.rates.find_for_weight(zone, weight)
        if rate is not None:
            result['rate'] = str(rate.id)
            result['weight_cost'] = rate.price
        else:
            logger.debug(f"No rate in zone {zone.name} covers {weight} kg, weight price is 0")

        result['distance_cost'] = result['distance_km'] * zone.multiplier
        result['cost'] = round_money(result['distance_cost'] + result['weight_cost'])
        result['applied_rule'] = AppliedRule.ZONE
        self._log_quote(location_name, normalized, weight, result)
        return result

    def _match_zone(self, normalized: str, city_province: str):
        matches = [
            zone for zone in self.zones.list_active()
            if zone.covers(normalized, city_province)
        ]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                f"Ambiguous shipping zones for '{normalized}': "
                f"{', '.join(z.name for z in matches)}; using {matches[0].name}"
            )
        return matches[0]

    def _log_quote(self, location_name, normalized, weight, result):
        logger.info(
            f"Shipping quote for '{sanitize_for_logging(location_name, max_length=100)}' "
            f"(normalized '{normalized}'), {weight} kg: "
            f"{result['applied_rule']} -> {result['cost']}"
        )


# =============================================================================
# PRICING ADMINISTRATION
# =============================================================================

WORKBOOK_COLUMNS = {
    'zone': ('Zone', 'Zona'),
    'min_weight': ('MinWeight', 'PesoMin'),
    'max_weight': ('MaxWeight', 'PesoMax'),
    'price': ('Price', 'Precio'),
    'provinces': ('Provinces', 'Provincias'),
}


class ShippingAdminService:
    """Write operations on shipping pricing that notify staff on change."""

    @staticmethod
    def schedule_pricing_notification(reason: str):
        from .tasks import notify_pricing_updated_task

        transaction.on_commit(lambda: notify_pricing_updated_task.delay(reason))

    @classmethod
    @transaction.atomic
    def update_config(cls, data: Dict[str, Any]) -> ShippingConfig:
        """
        Update the canonical shipping config, creating it if missing.

        Args:
            data: Validated field values

        Returns:
            ShippingConfig: Updated config
        """
        config = ShippingConfig.objects.get_or_create_default()
        for field, value in data.items():
            setattr(config, field, value)
        config.save()

        logger.info(f"Shipping config updated: {', '.join(sorted(data)) or 'no fields'}")
        cls.schedule_pricing_notification('config')
        return config

    @classmethod
    def import_rates_from_workbook(cls, uploaded_file) -> Dict[str, int]:
        """
        Import zones and rates from the first sheet of an .xlsx workbook.

        Columns: Zone/Zona, MinWeight/PesoMin, MaxWeight/PesoMax,
        Price/Precio, Provinces/Provincias (comma separated). Rows without
        a zone are skipped. Everything is imported or nothing is.

        Raises:
            ShippingImportError: If the file is unreadable, a weight or price
                is not a non-negative number, or a weight band is inverted
        """
        filename = sanitize_filename(getattr(uploaded_file, 'name', ''))

        try:
            workbook = load_workbook(filename=uploaded_file, read_only=True, data_only=True)
        except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as e:
            logger.warning(f"Rejected shipping workbook {filename}: {e}")
            raise ShippingImportError(ErrorMessages.INVALID_WORKBOOK)

        try:
            with transaction.atomic():
                result = cls._import_rows(workbook.worksheets[0].iter_rows(values_only=True))
        finally:
            workbook.close()

        logger.info(
            f"Imported shipping workbook {filename}: "
            f"{result['imported_zones']} zones, {result['imported_rates']} rates"
        )
        if result['imported_rates'] or result['imported_zones']:
            cls.schedule_pricing_notification('import')
        return result

    @classmethod
    def _import_rows(cls, rows) -> Dict[str, int]:
        imported_zones = 0
        imported_rates = 0
        default_max_weight = Decimal(str(
            settings.PAPELERIA_CONFIG.get('IMPORT_DEFAULT_MAX_WEIGHT', 9999)
        ))

        header = next(rows, None)
        if header is None:
            return {'imported_zones': 0, 'imported_rates': 0}
        index = {str(name).strip(): position for position, name in enumerate(header) if name is not None}

        # Data starts on spreadsheet row 2
        for row_number, row in enumerate(rows, start=2):
            values = {key: cls._cell(row, index, aliases) for key, aliases in WORKBOOK_COLUMNS.items()}

            zone_name = str(values['zone']).strip() if values['zone'] is not None else ''
            if not zone_name:
                continue

            min_weight = cls._number(values['min_weight'], Decimal('0'), row_number, 'MinWeight')
            max_weight = cls._number(values['max_weight'], default_max_weight, row_number, 'MaxWeight')
            price = cls._number(values['price'], Decimal('0'), row_number, 'Price')
            if min_weight > max_weight:
                raise ShippingImportError(
                    ErrorMessages.INVALID_WORKBOOK_RANGE.format(row=row_number),
                    extra_data={'row': row_number, 'column': 'MaxWeight'}
                )
            provinces = parse_province_list(values['provinces'])

            zone = ShippingZone.objects.filter(name=zone_name).first()
            if zone is None:
                zone = ShippingZone.objects.create(name=zone_name, provinces=provinces, is_active=True)
                imported_zones += 1
            elif provinces:
                zone.provinces = provinces
                zone.save(update_fields=['provinces', 'updated_at'])

            ShippingRate.objects.create(
                zone=zone,
                min_weight=min_weight,
                max_weight=max_weight,
                price=price
            )
            imported_rates += 1

        return {'imported_zones': imported_zones, 'imported_rates': imported_rates}

    @staticmethod
    def _cell(row, index, aliases):
        for alias in aliases:
            position = index.get(alias)
            if position is not None and position < len(row):
                value = row[position]
                if value is not None and str(value).strip() != '':
                    return value
        return None

    @staticmethod
    def _number(value, default: Decimal, row_number: int, column: str) -> Decimal:
        if value is None:
            return default
        try:
            number = to_decimal(value if not isinstance(value, str) else value.strip())
        except (InvalidOperation, ValueError):
            number = None

        if number is None or not number.is_finite() or number < 0:
            raise ShippingImportError(
                ErrorMessages.INVALID_WORKBOOK_VALUE.format(row=row_number, column=column),
                extra_data={'row': row_number, 'column': column}
            )
        return number
