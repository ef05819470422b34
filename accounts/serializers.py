"""
Accounts app serializers

Serializers for the user and API key payloads returned to the extension.
"""
from rest_framework import serializers

from .models import ApiKey, User


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Minimal user payload: id, email and display name.
    """

    name = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'name']
        read_only_fields = fields


class ApiKeySummarySerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source='user_id', read_only=True)
    userEmail = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = ApiKey
        fields = ['name', 'userId', 'userEmail']
        read_only_fields = fields
