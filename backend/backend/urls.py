"""
URL Configuration for Papelería Santiago
========================================
API routing with versioning and documentation.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView
)
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

# API v1 URLs
api_v1_patterns = [
    # Authentication
    path('auth/token/', TokenObtainPairView.as_view(), name='token-obtain-pair'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # Partners
    path('shipping/', include('apps.business.partners.shipping.urls')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # API v1
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]

admin.site.site_header = 'Papelería Santiago Admin'
admin.site.site_title = 'Papelería Santiago Admin'
admin.site.index_title = 'Shipping configuration'
