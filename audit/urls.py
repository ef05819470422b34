"""
Audit app URL configuration
"""
from django.urls import path

from .views import ApiKeyUsageView, DailyUsageView

urlpatterns = [
    path('usage', ApiKeyUsageView.as_view(), name='usage'),
    path('usage/daily', DailyUsageView.as_view(), name='usage-daily'),
]
