"""
Accounts app URL configuration
"""
from django.urls import path

from .views import ValidateApiKeyView

urlpatterns = [
    path('validate', ValidateApiKeyView.as_view(), name='validate-api-key'),
]
