"""
Shipping Admin Configuration for Papelería Santiago
===================================================
"""

from django.contrib import admin
from .models import ShippingCity, ShippingZone, ShippingRate, ShippingConfig
from .services import ShippingAdminService


class ShippingRateInline(admin.TabularInline):
    model = ShippingRate
    extra = 0
    fields = ['min_weight', 'max_weight', 'price', 'is_active']


@admin.register(ShippingZone)
class ShippingZoneAdmin(admin.ModelAdmin):
    list_display = ['name', 'multiplier', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [ShippingRateInline]

    actions = ['activate_zones', 'deactivate_zones']

    @admin.action(description='Activate selected zones')
    def activate_zones(self, request, queryset):
        for zone in queryset:
            zone.activate()

    @admin.action(description='Deactivate selected zones')
    def deactivate_zones(self, request, queryset):
        for zone in queryset:
            zone.deactivate()


@admin.register(ShippingRate)
class ShippingRateAdmin(admin.ModelAdmin):
    list_display = ['zone', 'min_weight', 'max_weight', 'price', 'is_active']
    list_filter = ['zone', 'is_active']
    search_fields = ['zone__name']
    raw_id_fields = ['zone']


@admin.register(ShippingCity)
class ShippingCityAdmin(admin.ModelAdmin):
    list_display = ['name', 'province', 'distance_km', 'is_custom_rate', 'custom_price']
    list_filter = ['is_custom_rate', 'province']
    search_fields = ['name', 'province']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(ShippingConfig)
class ShippingConfigAdmin(admin.ModelAdmin):
    list_display = ['base_rate', 'rate_per_km', 'rate_per_kg', 'iva_rate', 'is_active', 'updated_at']
    readonly_fields = ['id', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return not ShippingConfig.objects.exists()

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        ShippingAdminService.schedule_pricing_notification('config')
