"""
Shipping URLs for Papelería Santiago
====================================
"""

from django.urls import path
from . import views

app_name = 'shipping'

urlpatterns = [
    # Rate calculation
    path('calculate/', views.CalculateShippingView.as_view(), name='calculate-shipping'),
    path('quote/', views.ShippingQuoteView.as_view(), name='shipping-quote'),

    # Pricing configuration (reads are public, writes are staff only)
    path('config/', views.ShippingConfigView.as_view(), name='shipping-config'),
    path('zones/', views.ShippingZoneListView.as_view(), name='shipping-zones'),
    path('zones/<uuid:pk>/', views.ShippingZoneDetailView.as_view(), name='shipping-zone-detail'),
    path('zones/<uuid:zone_id>/rates/', views.ZoneRatesView.as_view(), name='zone-rates'),
    path('rates/', views.ShippingRatesView.as_view(), name='shipping-rates'),
    path('rates/<uuid:pk>/', views.ShippingRateDetailView.as_view(), name='shipping-rate-detail'),
    path('cities/', views.ShippingCityListView.as_view(), name='shipping-cities'),
    path('cities/<uuid:pk>/', views.ShippingCityDetailView.as_view(), name='shipping-city-detail'),

    # Bulk import
    path('import/', views.ImportShippingRatesView.as_view(), name='import-shipping-rates'),
]
