"""
Shipping Views for Papelería Santiago
=====================================
"""

import logging
from rest_framework import generics, status, permissions
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.parsers import MultiPartParser, FormParser
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, OpenApiResponse

from .models import ShippingCity, ShippingZone, ShippingRate, ShippingConfig
from .serializers import (
    ShippingConfigSerializer,
    ShippingZoneSerializer,
    ShippingRateSerializer,
    ShippingCitySerializer,
    CalculateShippingSerializer,
    ShippingCostSerializer,
    ShippingQuoteSerializer,
    ImportShippingRatesSerializer,
    ImportShippingRatesResultSerializer
)
from .services import ShippingCostResolver, ShippingAdminService

logger = logging.getLogger(__name__)


class IsStaffOrReadOnly(permissions.BasePermission):
    """Anyone may read shipping configuration; only staff may change it."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated and request.user.is_staff)


# =============================================================================
# CALCULATION
# =============================================================================

@extend_schema(
    tags=['Shipping'],
    request=CalculateShippingSerializer,
    responses={
        200: ShippingCostSerializer,
        400: OpenApiResponse(description='Invalid input')
    }
)
class CalculateShippingView(APIView):
    """
    Calculate the shipping cost for a destination and package weight.

    Returns ``{"cost": number}`` in USD.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = CalculateShippingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cost = ShippingCostResolver().calculate_shipping_cost(data['province'], data['weight'])

        return Response(ShippingCostSerializer({'cost': cost}).data)


@extend_schema(
    tags=['Shipping'],
    request=CalculateShippingSerializer,
    responses={
        200: ShippingQuoteSerializer,
        400: OpenApiResponse(description='Invalid input')
    }
)
class ShippingQuoteView(APIView):
    """
    Calculate the shipping cost with a breakdown of how it was obtained.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = CalculateShippingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        quote = ShippingCostResolver().quote(data['province'], data['weight'])

        return Response(ShippingQuoteSerializer(quote).data)


# =============================================================================
# GLOBAL CONFIG
# =============================================================================

@extend_schema(tags=['Shipping'], responses={200: ShippingConfigSerializer})
class ShippingConfigView(APIView):
    """
    Get or update the global fallback shipping config.

    The config is created with defaults the first time it is read.
    """

    permission_classes = [IsStaffOrReadOnly]

    def get(self, request):
        config = ShippingConfig.objects.get_or_create_default()
        return Response(ShippingConfigSerializer(config).data)

    @extend_schema(request=ShippingConfigSerializer)
    def put(self, request):
        return self._update(request, partial=False)

    @extend_schema(request=ShippingConfigSerializer)
    def patch(self, request):
        return self._update(request, partial=True)

    def _update(self, request, partial):
        config = ShippingConfig.objects.get_or_create_default()
        serializer = ShippingConfigSerializer(config, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        config = ShippingAdminService.update_config(serializer.validated_data)
        return Response(ShippingConfigSerializer(config).data)


# =============================================================================
# ZONES AND RATES
# =============================================================================

@extend_schema(tags=['Shipping'])
class ShippingZoneListView(generics.ListCreateAPIView):
    """
    List shipping zones or create one.

    Staff users also see inactive zones.
    """

    serializer_class = ShippingZoneSerializer
    permission_classes = [IsStaffOrReadOnly]
    search_fields = ['name']
    ordering_fields = ['name', 'created_at']

    def get_queryset(self):
        queryset = ShippingZone.objects.all()
        if not self.request.user.is_staff:
            queryset = queryset.filter(is_active=True)
        return queryset.order_by('name')


@extend_schema(tags=['Shipping'])
class ShippingZoneDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Get, update or delete a zone. Deleting a zone deletes its rates."""

    serializer_class = ShippingZoneSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_queryset(self):
        queryset = ShippingZone.objects.all()
        if not self.request.user.is_staff:
            queryset = queryset.filter(is_active=True)
        return queryset

    def perform_destroy(self, instance):
        logger.info(f"Deleting shipping zone {instance.name} and its rates")
        instance.delete()


@extend_schema(tags=['Shipping'])
class ZoneRatesView(generics.ListCreateAPIView):
    """List the active rates of a zone (lightest band first) or add a rate."""

    serializer_class = ShippingRateSerializer
    permission_classes = [IsStaffOrReadOnly]
    pagination_class = None

    def get_zone(self):
        return get_object_or_404(ShippingZone, pk=self.kwargs['zone_id'])

    def get_queryset(self):
        return ShippingRate.objects.filter(
            zone=self.get_zone(),
            is_active=True
        ).select_related('zone').order_by('min_weight')

    def perform_create(self, serializer):
        serializer.save(zone=self.get_zone())


@extend_schema(tags=['Shipping'])
class ShippingRatesView(generics.ListAPIView):
    """
    List all active shipping rates.

    Can filter by zone.
    """

    serializer_class = ShippingRateSerializer
    permission_classes = [permissions.AllowAny]
    filterset_fields = ['zone']
    ordering_fields = ['min_weight', 'price']

    def get_queryset(self):
        return ShippingRate.objects.filter(
            is_active=True
        ).select_related('zone').order_by('zone__name', 'min_weight')


@extend_schema(tags=['Shipping'])
class ShippingRateDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Get, update or delete a single rate."""

    serializer_class = ShippingRateSerializer
    permission_classes = [IsStaffOrReadOnly]
    queryset = ShippingRate.objects.select_related('zone')


# =============================================================================
# CITIES
# =============================================================================

@extend_schema(tags=['Shipping'])
class ShippingCityListView(generics.ListCreateAPIView):
    """List city overrides or create one."""

    serializer_class = ShippingCitySerializer
    permission_classes = [IsStaffOrReadOnly]
    queryset = ShippingCity.objects.order_by('name')
    filterset_fields = ['province', 'is_custom_rate']
    search_fields = ['name', 'province']


@extend_schema(tags=['Shipping'])
class ShippingCityDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Get, update or delete a city override."""

    serializer_class = ShippingCitySerializer
    permission_classes = [IsStaffOrReadOnly]
    queryset = ShippingCity.objects.all()


# =============================================================================
# IMPORT
# =============================================================================

@extend_schema(
    tags=['Shipping'],
    request=ImportShippingRatesSerializer,
    responses={
        200: ImportShippingRatesResultSerializer,
        400: OpenApiResponse(description='Missing or unreadable workbook')
    }
)
class ImportShippingRatesView(APIView):
    """
    Import zones and rates from an Excel workbook.

    Expected columns: Zone, MinWeight, MaxWeight, Price, Provinces
    (Spanish headers Zona, PesoMin, PesoMax, Precio, Provincias also work).
    """

    permission_classes = [permissions.IsAdminUser]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        serializer = ImportShippingRatesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ShippingAdminService.import_rates_from_workbook(
            serializer.validated_data['file']
        )

        return Response(
            ImportShippingRatesResultSerializer(result).data,
            status=status.HTTP_200_OK
        )
