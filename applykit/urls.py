"""
URL configuration for the applykit project.

Public routes: health checks, API key validation and usage lookup by header.
Everything else under /api/ requires an X-API-Key header.
"""
from django.contrib import admin
from django.urls import include, path

from applykit.views import api_health, health

urlpatterns = [
    path('health', health, name='health'),
    path('admin/', admin.site.urls),

    # API views
    path('api/health', api_health, name='api-health'),
    path('api/auth/', include('accounts.urls')),
    path('api/', include('audit.urls')),
    path('api/', include('generation.urls')),
]

handler404 = 'applykit.views.not_found'
handler500 = 'applykit.views.server_error'
