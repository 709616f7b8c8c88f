"""
Shipping Tests for Papelería Santiago
=====================================
Unit and integration tests for shipping cost resolution and pricing
administration.
"""

from decimal import Decimal
from io import BytesIO

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase
from openpyxl import Workbook
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.base.core.system.exceptions import ShippingImportError
from .admin import ShippingZoneAdmin
from .models import ShippingCity, ShippingZone, ShippingRate, ShippingConfig
from .services import AppliedRule, ShippingAdminService, ShippingCostResolver
from .tasks import notify_pricing_updated_task
from .utils import normalize_location, parse_province_list

User = get_user_model()

SERVICES_LOGGER = 'apps.business.partners.shipping.services'
XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def build_workbook(rows):
    """Return .xlsx bytes with ``rows`` (first row is the header)."""
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def workbook_upload(rows, name='rates.xlsx'):
    return SimpleUploadedFile(name, build_workbook(rows), content_type=XLSX_CONTENT_TYPE)


class NormalizeLocationTests(SimpleTestCase):
    """Tests for location name normalization."""

    def test_lowercases_and_trims(self):
        self.assertEqual(normalize_location('  LOJA '), 'loja')

    def test_strips_diacritics(self):
        self.assertEqual(normalize_location('Bolívar'), 'bolivar')
        self.assertEqual(normalize_location('Santo Domingo de los Tsáchilas'), 'santo domingo de los tsachilas')
        self.assertEqual(normalize_location('Sucumbíos'), 'sucumbios')

    def test_removes_provincia_prefix(self):
        self.assertEqual(normalize_location('Provincia de Loja'), 'loja')
        self.assertEqual(normalize_location('Provincia del Azuay'), 'azuay')
        self.assertEqual(normalize_location('provincia Pichincha'), 'pichincha')

    def test_removes_english_suffix(self):
        self.assertEqual(normalize_location('Loja Province'), 'loja')
        self.assertEqual(normalize_location('Guayas State'), 'guayas')
        self.assertEqual(normalize_location('Galapagos region'), 'galapagos')

    def test_prefix_only_removed_at_start(self):
        self.assertEqual(normalize_location('Nueva provincia de Loja'), 'nueva provincia de loja')

    def test_empty_values(self):
        self.assertEqual(normalize_location(None), '')
        self.assertEqual(normalize_location(''), '')
        self.assertEqual(normalize_location('   '), '')

    def test_parse_province_list(self):
        self.assertEqual(parse_province_list('Loja, Azuay ,, Cañar'), ['Loja', 'Azuay', 'Cañar'])
        self.assertEqual(parse_province_list([' Loja ', '']), ['Loja'])
        self.assertEqual(parse_province_list(None), [])


class ShippingStoreTests(TestCase):
    """Tests for the query contracts the resolver depends on."""

    def test_city_name_match_wins_over_province_match(self):
        ShippingCity.objects.create(name='Catamayo', province='Loja', distance_km=Decimal('30'))
        loja = ShippingCity.objects.create(name='Loja', province='Loja', distance_km=Decimal('5'))

        self.assertEqual(ShippingCity.objects.find_by_name_or_province('loja'), loja)

    def test_city_found_by_province(self):
        catamayo = ShippingCity.objects.create(name='Catamayo', province='Provincia de Loja')

        self.assertEqual(ShippingCity.objects.find_by_name_or_province('loja'), catamayo)

    def test_city_lookup_with_empty_name(self):
        ShippingCity.objects.create(name='Loja', province='Loja')

        self.assertIsNone(ShippingCity.objects.find_by_name_or_province(''))
        self.assertIsNone(ShippingCity.objects.find_by_name_or_province('quito'))

    def test_list_active_zones_skips_inactive(self):
        sierra = ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        ShippingZone.objects.create(name='Costa', provinces=['Guayas'], is_active=False)

        self.assertEqual(ShippingZone.objects.list_active(), [sierra])

    def test_rate_band_is_inclusive(self):
        zone = ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        rate = ShippingRate.objects.create(
            zone=zone, min_weight=Decimal('1'), max_weight=Decimal('3'), price=Decimal('2.00')
        )

        self.assertEqual(ShippingRate.objects.find_for_weight(zone, Decimal('1')), rate)
        self.assertEqual(ShippingRate.objects.find_for_weight(zone, Decimal('3')), rate)
        self.assertIsNone(ShippingRate.objects.find_for_weight(zone, Decimal('3.001')))
        self.assertIsNone(ShippingRate.objects.find_for_weight(zone, Decimal('0.5')))

    def test_inactive_rate_is_ignored(self):
        zone = ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        ShippingRate.objects.create(
            zone=zone, min_weight=Decimal('0'), max_weight=Decimal('5'),
            price=Decimal('2.00'), is_active=False
        )

        self.assertIsNone(ShippingRate.objects.find_for_weight(zone, Decimal('2')))

    def test_default_config_created_once(self):
        self.assertFalse(ShippingConfig.objects.exists())

        config = ShippingConfig.objects.get_or_create_default()
        again = ShippingConfig.objects.get_or_create_default()

        self.assertEqual(config.pk, again.pk)
        self.assertEqual(ShippingConfig.objects.count(), 1)
        self.assertEqual(config.base_rate, Decimal('2.50'))
        self.assertEqual(config.rate_per_km, Decimal('0.35'))
        self.assertEqual(config.rate_per_kg, Decimal('0.25'))
        self.assertEqual(config.iva_rate, Decimal('0.15'))
        self.assertTrue(config.is_active)

    def test_oldest_config_is_canonical(self):
        first = ShippingConfig.objects.create(base_rate=Decimal('1.00'))
        ShippingConfig.objects.create(base_rate=Decimal('9.00'))

        self.assertEqual(ShippingConfig.objects.get_or_create_default(), first)


class ShippingCostResolverTests(TestCase):
    """Tests for shipping cost resolution against the database."""

    def setUp(self):
        self.resolver = ShippingCostResolver()
        self.sierra = ShippingZone.objects.create(
            name='Sierra',
            provinces=['Loja', 'Azuay'],
            multiplier=Decimal('0.35')
        )
        ShippingRate.objects.create(
            zone=self.sierra,
            min_weight=Decimal('1'),
            max_weight=Decimal('3'),
            price=Decimal('2.00')
        )
        ShippingCity.objects.create(name='Loja', province='Loja', distance_km=Decimal('5'))

    def test_city_distance_plus_zone_rate(self):
        cost = self.resolver.calculate_shipping_cost('Loja', 2)

        self.assertEqual(cost, Decimal('3.75'))

    def test_normalization_equivalence(self):
        expected = self.resolver.calculate_shipping_cost('loja', 2)

        self.assertEqual(self.resolver.calculate_shipping_cost('Provincia de Loja', 2), expected)
        self.assertEqual(self.resolver.calculate_shipping_cost('LOJA ', 2), expected)
        self.assertEqual(self.resolver.calculate_shipping_cost('Loja Province', 2), expected)

    def test_custom_rate_city_ignores_weight(self):
        ShippingCity.objects.create(
            name='Quito', province='Pichincha',
            is_custom_rate=True, custom_price=Decimal('7.50')
        )

        for weight in (0, 1, Decimal('2.5'), 40, 1000):
            self.assertEqual(self.resolver.calculate_shipping_cost('Quito', weight), Decimal('7.50'))

    def test_custom_rate_without_price_is_free(self):
        ShippingCity.objects.create(name='Vilcabamba', province='Loja', is_custom_rate=True)

        self.assertEqual(self.resolver.calculate_shipping_cost('Vilcabamba', 2), Decimal('0'))

    def test_weight_outside_rate_bands(self):
        cost = self.resolver.calculate_shipping_cost('Loja', 10)

        self.assertEqual(cost, Decimal('1.75'))

    def test_zone_matched_through_city_province(self):
        ShippingCity.objects.create(name='Catamayo', province='Loja', distance_km=Decimal('30'))

        cost = self.resolver.calculate_shipping_cost('Catamayo', 2)

        # 30 * 0.35 + 2.00
        self.assertEqual(cost, Decimal('12.50'))

    def test_zone_matched_without_city(self):
        cost = self.resolver.calculate_shipping_cost('Azuay', 2)

        self.assertEqual(cost, Decimal('2.00'))

    def test_result_rounded_to_two_places(self):
        ShippingZone.objects.create(name='Oriente', provinces=['Napo'], multiplier=Decimal('0.3333'))
        ShippingCity.objects.create(name='Tena', province='Napo', distance_km=Decimal('3.33'))

        cost = self.resolver.calculate_shipping_cost('Tena', 2)

        # 3.33 * 0.3333 = 1.109889
        self.assertEqual(cost, Decimal('1.11'))
        self.assertEqual(cost.as_tuple().exponent, -2)

    def test_fallback_when_no_zone_matches(self):
        ShippingConfig.objects.create(
            base_rate=Decimal('2.50'),
            rate_per_kg=Decimal('0.25'),
            is_active=True
        )

        for weight in (Decimal('0'), Decimal('1'), Decimal('2.125'), Decimal('17')):
            cost = self.resolver.calculate_shipping_cost('Galápagos', weight)
            self.assertEqual(cost, Decimal('2.50') + weight * Decimal('0.25'))

    def test_fallback_disabled_returns_zero(self):
        ShippingConfig.objects.create(is_active=False)

        for weight in (0, 1, 5, 100):
            self.assertEqual(self.resolver.calculate_shipping_cost('Galápagos', weight), Decimal('0'))

    def test_fallback_creates_default_config(self):
        cost = self.resolver.calculate_shipping_cost('Galápagos', 2)

        self.assertEqual(ShippingConfig.objects.count(), 1)
        self.assertEqual(cost, Decimal('3.00'))

    def test_inactive_zone_falls_back_to_global(self):
        self.sierra.deactivate()
        ShippingConfig.objects.create(is_active=False)

        self.assertEqual(self.resolver.calculate_shipping_cost('Loja', 2), Decimal('0'))

    def test_ambiguous_zones_use_oldest_and_warn(self):
        ShippingZone.objects.create(name='Sur', provinces=['Loja'], multiplier=Decimal('1'))

        with self.assertLogs(SERVICES_LOGGER, level='WARNING') as logs:
            quote = self.resolver.quote('Loja', 2)

        self.assertEqual(quote['zone'], 'Sierra')
        self.assertEqual(quote['cost'], Decimal('3.75'))
        self.assertIn('Ambiguous', logs.output[0])

    def test_quote_breakdown_for_zone(self):
        quote = self.resolver.quote('Provincia de Loja', 2)

        self.assertEqual(quote['applied_rule'], AppliedRule.ZONE)
        self.assertEqual(quote['normalized_location'], 'loja')
        self.assertEqual(quote['city'], 'Loja')
        self.assertEqual(quote['zone'], 'Sierra')
        self.assertEqual(quote['distance_cost'], Decimal('1.75'))
        self.assertEqual(quote['weight_cost'], Decimal('2.00'))
        self.assertIsNotNone(quote['rate'])

    def test_quote_rules_for_custom_city_and_fallback(self):
        ShippingCity.objects.create(
            name='Quito', province='Pichincha',
            is_custom_rate=True, custom_price=Decimal('7.50')
        )
        ShippingConfig.objects.create(is_active=False)

        self.assertEqual(self.resolver.quote('Quito', 1)['applied_rule'], AppliedRule.CUSTOM_CITY)
        self.assertEqual(self.resolver.quote('Manabí', 1)['applied_rule'], AppliedRule.SHIPPING_DISABLED)

        ShippingConfig.objects.update(is_active=True)
        self.assertEqual(self.resolver.quote('Manabí', 1)['applied_rule'], AppliedRule.GLOBAL_FALLBACK)

    def test_resolution_does_not_modify_configuration(self):
        ShippingConfig.objects.get_or_create_default()
        counts = (
            ShippingCity.objects.count(), ShippingZone.objects.count(),
            ShippingRate.objects.count(), ShippingConfig.objects.count()
        )

        self.resolver.calculate_shipping_cost('Loja', 2)
        self.resolver.calculate_shipping_cost('Galápagos', 2)

        self.assertEqual(counts, (
            ShippingCity.objects.count(), ShippingZone.objects.count(),
            ShippingRate.objects.count(), ShippingConfig.objects.count()
        ))


class FakeCityStore:

    def __init__(self, *cities):
        self.cities = cities

    def find_by_name_or_province(self, normalized_name):
        for city in self.cities:
            if normalize_location(city.name) == normalized_name:
                return city
        return None


class FakeZoneStore:

    def __init__(self, *zones):
        self.zones = list(zones)

    def list_active(self):
        return [zone for zone in self.zones if zone.is_active]


class FakeRateStore:

    def __init__(self, *rates):
        self.rates = rates

    def find_for_weight(self, zone, weight):
        for rate in self.rates:
            if rate.zone_name == zone.name and rate.min_weight <= weight <= rate.max_weight:
                return rate
        return None


class InjectedStoresResolverTests(SimpleTestCase):
    """The resolver runs against any store implementation, without a database."""

    def build_resolver(self, config=None, cities=(), zones=(), rates=()):
        config = config or ShippingConfig(base_rate=Decimal('1.00'), rate_per_kg=Decimal('0.50'))
        return ShippingCostResolver(
            cities=FakeCityStore(*cities),
            zones=FakeZoneStore(*zones),
            rates=FakeRateStore(*rates),
            config_provider=lambda: config
        )

    def test_zone_pricing_with_injected_stores(self):
        zone = ShippingZone(name='Sierra', provinces=['Loja'], multiplier=Decimal('0.35'))
        rate = ShippingRate(min_weight=Decimal('1'), max_weight=Decimal('3'), price=Decimal('2.00'))
        rate.zone_name = 'Sierra'
        city = ShippingCity(name='Loja', province='Loja', distance_km=Decimal('5'))

        resolver = self.build_resolver(cities=[city], zones=[zone], rates=[rate])

        self.assertEqual(resolver.calculate_shipping_cost('Loja', 2), Decimal('3.75'))

    def test_injected_config_is_used_for_fallback(self):
        resolver = self.build_resolver()

        self.assertEqual(resolver.calculate_shipping_cost('Loja', Decimal('4')), Decimal('3.00'))

    def test_float_weight_is_accepted(self):
        resolver = self.build_resolver()

        self.assertEqual(resolver.calculate_shipping_cost('Loja', 1.5), Decimal('1.75'))


class CalculateShippingAPITests(APITestCase):
    """Tests for the public calculation endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.calculate_url = '/api/v1/shipping/calculate/'
        self.quote_url = '/api/v1/shipping/quote/'

        zone = ShippingZone.objects.create(name='Sierra', provinces=['Loja'], multiplier=Decimal('0.35'))
        ShippingRate.objects.create(
            zone=zone, min_weight=Decimal('1'), max_weight=Decimal('3'), price=Decimal('2.00')
        )
        ShippingCity.objects.create(name='Loja', province='Loja', distance_km=Decimal('5'))

    def test_calculate_returns_cost(self):
        response = self.client.post(
            self.calculate_url,
            {'province': 'Loja', 'weight': 2},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'cost': 3.75})

    def test_calculate_fallback_for_unknown_province(self):
        ShippingConfig.objects.create(base_rate=Decimal('2.50'), rate_per_kg=Decimal('0.25'))

        response = self.client.post(
            self.calculate_url,
            {'province': 'Esmeraldas', 'weight': '2.00'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cost'], 3.0)

    def test_negative_weight_rejected(self):
        response = self.client.post(
            self.calculate_url,
            {'province': 'Loja', 'weight': -1},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn('weight', response.data['error']['details'])

    def test_missing_province_rejected(self):
        response = self.client.post(self.calculate_url, {'weight': 1}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('province', response.data['error']['details'])

    def test_weight_with_many_decimals_accepted(self):
        response = self.client.post(
            self.calculate_url,
            {'province': 'Nowhere', 'weight': 1.2345},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        # 2.50 + 1.2345 * 0.25
        self.assertAlmostEqual(response.data['cost'], 2.808625, places=6)

    def test_float_rounding_artifact_accepted(self):
        for url in (self.calculate_url, self.quote_url):
            response = self.client.post(
                url,
                {'province': 'Nowhere', 'weight': 0.1 + 0.2},
                format='json'
            )

            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertAlmostEqual(response.data['cost'], 2.575, places=6)

        self.assertEqual(
            self.client.post(
                self.calculate_url,
                {'province': 'Nowhere', 'weight': 0.30000000000000004},
                format='json'
            ).status_code,
            status.HTTP_200_OK
        )

    def test_non_finite_weight_rejected(self):
        response = self.client.post(
            self.calculate_url,
            {'province': 'Loja', 'weight': 'nan'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('weight', response.data['error']['details'])

    def test_blank_province_rejected(self):
        response = self.client.post(
            self.calculate_url,
            {'province': '   ', 'weight': 1},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quote_returns_breakdown(self):
        response = self.client.post(
            self.quote_url,
            {'province': 'Provincia de Loja', 'weight': 2},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cost'], 3.75)
        self.assertEqual(response.data['applied_rule'], AppliedRule.ZONE)
        self.assertEqual(response.data['zone'], 'Sierra')
        self.assertEqual(response.data['distance_cost'], 1.75)
        self.assertEqual(response.data['weight_cost'], 2.0)


class ShippingAdminAPITests(APITestCase):
    """Tests for the pricing administration endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(
            username='admin',
            email='admin@example.com',
            password='AdminPass123!',
            is_staff=True
        )
        self.customer = User.objects.create_user(
            username='customer',
            email='customer@example.com',
            password='CustomerPass123!'
        )

    def test_get_config_creates_default(self):
        response = self.client.get('/api/v1/shipping/config/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['base_rate'], '2.50')
        self.assertTrue(response.data['is_active'])
        self.assertEqual(ShippingConfig.objects.count(), 1)

    def test_anonymous_cannot_update_config(self):
        response = self.client.patch(
            '/api/v1/shipping/config/',
            {'base_rate': '9.99'},
            format='json'
        )

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(response.data['success'])

    def test_customer_cannot_update_config(self):
        self.client.force_authenticate(user=self.customer)

        response = self.client.patch(
            '/api/v1/shipping/config/',
            {'base_rate': '9.99'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_updates_config_and_staff_is_notified(self):
        self.client.force_authenticate(user=self.staff)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.patch(
                '/api/v1/shipping/config/',
                {'base_rate': '3.00', 'is_active': False},
                format='json'
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        config = ShippingConfig.objects.get()
        self.assertEqual(config.base_rate, Decimal('3.00'))
        self.assertFalse(config.is_active)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['admin@example.com'])

    def test_staff_creates_zone(self):
        self.client.force_authenticate(user=self.staff)

        response = self.client.post(
            '/api/v1/shipping/zones/',
            {'name': 'Costa', 'provinces': ['Guayas', ' ', 'Manabí'], 'multiplier': '0.05'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        zone = ShippingZone.objects.get(name='Costa')
        self.assertEqual(zone.provinces, ['Guayas', 'Manabí'])
        self.assertTrue(zone.is_active)

    def test_anonymous_zone_list_hides_inactive(self):
        ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        ShippingZone.objects.create(name='Costa', provinces=['Guayas'], is_active=False)

        response = self.client.get('/api/v1/shipping/zones/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [zone['name'] for zone in response.data['results']]
        self.assertEqual(names, ['Sierra'])

        self.client.force_authenticate(user=self.staff)
        response = self.client.get('/api/v1/shipping/zones/')
        self.assertEqual(len(response.data['results']), 2)

    def test_inactive_zone_detail_hidden_from_non_staff(self):
        zone = ShippingZone.objects.create(name='Costa', provinces=['Guayas'], is_active=False)
        url = f'/api/v1/shipping/zones/{zone.id}/'

        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(user=self.customer)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(user=self.staff)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

    def test_delete_zone_deletes_rates(self):
        zone = ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        ShippingRate.objects.create(zone=zone, min_weight=0, max_weight=5, price=Decimal('2.00'))
        self.client.force_authenticate(user=self.staff)

        response = self.client.delete(f'/api/v1/shipping/zones/{zone.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ShippingRate.objects.exists())

    def test_zone_rates_created_and_listed_by_weight(self):
        zone = ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        self.client.force_authenticate(user=self.staff)
        url = f'/api/v1/shipping/zones/{zone.id}/rates/'

        for band in (('3', '10', '4.00'), ('0', '3', '2.00')):
            response = self.client.post(
                url,
                {'min_weight': band[0], 'max_weight': band[1], 'price': band[2]},
                format='json'
            )
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.client.force_authenticate(user=None)
        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([rate['price'] for rate in response.data], ['2.00', '4.00'])
        self.assertTrue(all(rate['zone_name'] == 'Sierra' for rate in response.data))

    def test_rate_with_inverted_band_rejected(self):
        zone = ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        self.client.force_authenticate(user=self.staff)

        response = self.client.post(
            f'/api/v1/shipping/zones/{zone.id}/rates/',
            {'min_weight': '5', 'max_weight': '1', 'price': '2.00'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('max_weight', response.data['error']['details'])

    def test_rates_for_unknown_zone(self):
        response = self.client.get(
            '/api/v1/shipping/zones/00000000-0000-0000-0000-000000000000/rates/'
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'not_found')

    def test_rates_list_filtered_by_zone(self):
        sierra = ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        costa = ShippingZone.objects.create(name='Costa', provinces=['Guayas'])
        ShippingRate.objects.create(zone=sierra, min_weight=0, max_weight=5, price=Decimal('2.00'))
        ShippingRate.objects.create(zone=costa, min_weight=0, max_weight=5, price=Decimal('3.00'))

        response = self.client.get('/api/v1/shipping/rates/', {'zone': str(costa.id)})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['zone_name'], 'Costa')

    def test_staff_updates_rate(self):
        zone = ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        rate = ShippingRate.objects.create(zone=zone, min_weight=0, max_weight=5, price=Decimal('2.00'))
        self.client.force_authenticate(user=self.staff)

        response = self.client.patch(
            f'/api/v1/shipping/rates/{rate.id}/',
            {'price': '2.75'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rate.refresh_from_db()
        self.assertEqual(rate.price, Decimal('2.75'))

    def test_staff_creates_custom_rate_city(self):
        self.client.force_authenticate(user=self.staff)

        response = self.client.post(
            '/api/v1/shipping/cities/',
            {'name': 'Quito', 'province': 'Pichincha', 'is_custom_rate': True, 'custom_price': '7.50'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        cost = ShippingCostResolver().calculate_shipping_cost('quito', 12)
        self.assertEqual(cost, Decimal('7.50'))

    def test_duplicate_city_name_rejected(self):
        ShippingCity.objects.create(name='Quito', province='Pichincha')
        self.client.force_authenticate(user=self.staff)

        response = self.client.post(
            '/api/v1/shipping/cities/',
            {'name': 'Quito', 'province': 'Pichincha'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_city_search(self):
        ShippingCity.objects.create(name='Quito', province='Pichincha')
        ShippingCity.objects.create(name='Cuenca', province='Azuay')

        response = self.client.get('/api/v1/shipping/cities/', {'search': 'azuay'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([city['name'] for city in response.data['results']], ['Cuenca'])


class ShippingZoneAdminTests(TestCase):
    """Tests for the zone admin bulk actions."""

    def setUp(self):
        self.model_admin = ShippingZoneAdmin(ShippingZone, admin.site)
        ShippingZone.objects.create(name='Sierra', provinces=['Loja'])
        ShippingZone.objects.create(name='Costa', provinces=['Guayas'], is_active=False)

    def test_deactivate_and_activate_zones(self):
        self.model_admin.deactivate_zones(None, ShippingZone.objects.all())
        self.assertFalse(ShippingZone.objects.filter(is_active=True).exists())
        self.assertEqual(ShippingZone.objects.list_active(), [])

        self.model_admin.activate_zones(None, ShippingZone.objects.filter(name='Costa'))
        self.assertEqual(
            [zone.name for zone in ShippingZone.objects.list_active()],
            ['Costa']
        )


class ShippingImportTests(TestCase):
    """Tests for the Excel rates import."""

    def test_import_creates_zones_and_rates(self):
        upload = workbook_upload([
            ['Zone', 'MinWeight', 'MaxWeight', 'Price', 'Provinces'],
            ['Sierra', 0, 3, 2.0, 'Loja, Azuay'],
            ['Sierra', 3, 10, 4.5, None],
            ['Costa', 0, 5, 3.25, 'Guayas'],
        ])

        result = ShippingAdminService.import_rates_from_workbook(upload)

        self.assertEqual(result, {'imported_zones': 2, 'imported_rates': 3})
        sierra = ShippingZone.objects.get(name='Sierra')
        self.assertEqual(sierra.provinces, ['Loja', 'Azuay'])
        self.assertEqual(sierra.rates.count(), 2)
        rate = ShippingRate.objects.find_for_weight(sierra, Decimal('5'))
        self.assertEqual(rate.price, Decimal('4.50'))

    def test_import_spanish_headers_and_defaults(self):
        upload = workbook_upload([
            ['Zona', 'PesoMin', 'PesoMax', 'Precio', 'Provincias'],
            ['Oriente', None, None, 6, 'Napo'],
        ])

        ShippingAdminService.import_rates_from_workbook(upload)

        rate = ShippingRate.objects.get()
        self.assertEqual(rate.zone.name, 'Oriente')
        self.assertEqual(rate.min_weight, Decimal('0'))
        self.assertEqual(rate.max_weight, Decimal('9999'))
        self.assertEqual(rate.price, Decimal('6'))

    def test_import_replaces_provinces_of_existing_zone(self):
        ShippingZone.objects.create(name='Sierra', provinces=['Pichincha'])
        upload = workbook_upload([
            ['Zone', 'MinWeight', 'MaxWeight', 'Price', 'Provinces'],
            ['Sierra', 0, 3, 2, 'Loja,Azuay'],
        ])

        result = ShippingAdminService.import_rates_from_workbook(upload)

        self.assertEqual(result, {'imported_zones': 0, 'imported_rates': 1})
        self.assertEqual(ShippingZone.objects.get(name='Sierra').provinces, ['Loja', 'Azuay'])

    def test_rows_without_zone_are_skipped(self):
        upload = workbook_upload([
            ['Zone', 'MinWeight', 'MaxWeight', 'Price'],
            [None, 0, 3, 2],
            ['  ', 0, 3, 2],
            ['Sierra', 0, 3, 2],
        ])

        result = ShippingAdminService.import_rates_from_workbook(upload)

        self.assertEqual(result, {'imported_zones': 1, 'imported_rates': 1})

    def test_invalid_number_aborts_whole_import(self):
        upload = workbook_upload([
            ['Zone', 'MinWeight', 'MaxWeight', 'Price'],
            ['Sierra', 0, 3, 2],
            ['Costa', 0, 3, 'gratis'],
        ])

        with self.assertRaises(ShippingImportError) as ctx:
            ShippingAdminService.import_rates_from_workbook(upload)

        self.assertEqual(ctx.exception.extra_data, {'row': 3, 'column': 'Price'})
        self.assertFalse(ShippingZone.objects.exists())
        self.assertFalse(ShippingRate.objects.exists())

    def test_inverted_weight_band_aborts_import(self):
        upload = workbook_upload([
            ['Zone', 'MinWeight', 'MaxWeight', 'Price'],
            ['Sierra', 0, 3, 2],
            ['Sierra', 10, 5, 4],
        ])

        with self.assertRaises(ShippingImportError) as ctx:
            ShippingAdminService.import_rates_from_workbook(upload)

        self.assertEqual(ctx.exception.extra_data, {'row': 3, 'column': 'MaxWeight'})
        self.assertFalse(ShippingRate.objects.exists())

    def test_negative_price_aborts_import(self):
        upload = workbook_upload([
            ['Zone', 'MinWeight', 'MaxWeight', 'Price'],
            ['Sierra', 0, 3, -2],
        ])

        with self.assertRaises(ShippingImportError) as ctx:
            ShippingAdminService.import_rates_from_workbook(upload)

        self.assertEqual(ctx.exception.extra_data, {'row': 2, 'column': 'Price'})
        self.assertFalse(ShippingZone.objects.exists())

    def test_non_finite_weight_aborts_import(self):
        upload = workbook_upload([
            ['Zone', 'MinWeight', 'MaxWeight', 'Price'],
            ['Sierra', 'NaN', 3, 2],
        ])

        with self.assertRaises(ShippingImportError) as ctx:
            ShippingAdminService.import_rates_from_workbook(upload)

        self.assertEqual(ctx.exception.extra_data, {'row': 2, 'column': 'MinWeight'})
        self.assertFalse(ShippingRate.objects.exists())

    def test_unreadable_workbook_rejected(self):
        upload = SimpleUploadedFile('rates.xlsx', b'not a workbook', content_type=XLSX_CONTENT_TYPE)

        with self.assertRaises(ShippingImportError):
            ShippingAdminService.import_rates_from_workbook(upload)


class ShippingImportAPITests(APITestCase):
    """Tests for the import endpoint."""

    def setUp(self):
        self.client = APIClient()
        self.url = '/api/v1/shipping/import/'
        self.staff = User.objects.create_user(
            username='admin',
            email='admin@example.com',
            password='AdminPass123!',
            is_staff=True
        )

    def test_staff_imports_workbook_and_is_notified(self):
        self.client.force_authenticate(user=self.staff)
        upload = workbook_upload([
            ['Zone', 'MinWeight', 'MaxWeight', 'Price', 'Provinces'],
            ['Sierra', 0, 3, 2, 'Loja'],
        ])

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'imported_zones': 1, 'imported_rates': 1})
        self.assertEqual(len(mail.outbox), 1)

    def test_non_xlsx_file_rejected(self):
        self.client.force_authenticate(user=self.staff)
        upload = SimpleUploadedFile('rates.csv', b'Zone,Price\nSierra,2\n', content_type='text/csv')

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('file', response.data['error']['details'])

    def test_corrupt_workbook_returns_error_envelope(self):
        self.client.force_authenticate(user=self.staff)
        upload = SimpleUploadedFile('rates.xlsx', b'garbage', content_type=XLSX_CONTENT_TYPE)

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['code'], 'shipping_import_failed')

    def test_anonymous_cannot_import(self):
        upload = workbook_upload([['Zone'], ['Sierra']])

        response = self.client.post(self.url, {'file': upload}, format='multipart')

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(ShippingZone.objects.exists())


class NotifyPricingUpdatedTaskTests(TestCase):
    """Tests for the staff notification task."""

    def test_emails_active_staff_only(self):
        User.objects.create_user(username='a', email='a@example.com', password='x', is_staff=True)
        User.objects.create_user(username='b', email='b@example.com', password='x', is_staff=True, is_active=False)
        User.objects.create_user(username='c', email='c@example.com', password='x')
        User.objects.create_user(username='d', email='', password='x', is_staff=True)

        result = notify_pricing_updated_task.apply(args=['import']).get()

        self.assertEqual(result, {'status': 'success', 'sent': 1})
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['a@example.com'])
        self.assertIn('imported', mail.outbox[0].body)

    def test_skips_without_staff(self):
        result = notify_pricing_updated_task.apply(args=['config']).get()

        self.assertEqual(result, {'status': 'skipped', 'sent': 0})
        self.assertEqual(len(mail.outbox), 0)
