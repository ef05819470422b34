from unittest import mock

from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient, APIRequestFactory

from accounts.authentication import ApiKeyAuthentication, resolve_api_key
from accounts.models import ApiKey, User
from applykit.errors import AuthenticationError, ErrorCode, ForbiddenError


class ApiKeyTestMixin:
    def create_key(self, *, verified=True, user_deleted=False, **key_fields):
        user = User.objects.create_user(
            username=f"user{User.objects.count()}",
            email=f"user{User.objects.count()}@example.com",
            full_name="Sam Applicant",
            is_verified_by_admin=verified,
            deleted_at=timezone.now() if user_deleted else None,
        )
        return ApiKey.objects.create(user=user, name="Extension", **key_fields)


class ResolveApiKeyTests(ApiKeyTestMixin, TestCase):
    def test_missing_key(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            resolve_api_key("   ")
        self.assertEqual(ctx.exception.code, ErrorCode.MISSING_API_KEY)
        self.assertEqual(ctx.exception.status_code, 401)

    def test_unknown_key(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            resolve_api_key("ak_does_not_exist")
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_API_KEY)

    def test_key_is_trimmed(self) -> None:
        api_key = self.create_key()
        self.assertEqual(resolve_api_key(f"  {api_key.key}\n").pk, api_key.pk)

    def test_inactive_and_deleted_keys(self) -> None:
        for fields in ({"is_active": False}, {"deleted_at": timezone.now()}):
            with self.subTest(fields=fields):
                api_key = self.create_key(**fields)
                with self.assertRaises(ForbiddenError) as ctx:
                    resolve_api_key(api_key.key)
                self.assertEqual(ctx.exception.code, ErrorCode.API_KEY_INACTIVE)
                self.assertEqual(ctx.exception.status_code, 403)

    def test_deleted_user(self) -> None:
        api_key = self.create_key(user_deleted=True)
        with self.assertRaises(ForbiddenError) as ctx:
            resolve_api_key(api_key.key)
        self.assertEqual(ctx.exception.code, ErrorCode.USER_DELETED)

    def test_unverified_user(self) -> None:
        api_key = self.create_key(verified=False)
        with self.assertRaises(ForbiddenError) as ctx:
            resolve_api_key(api_key.key)
        self.assertEqual(ctx.exception.code, ErrorCode.USER_NOT_VERIFIED)

    def test_status_checks_can_be_skipped(self) -> None:
        api_key = self.create_key(verified=False, is_active=False)
        self.assertEqual(resolve_api_key(api_key.key, enforce_status=False).pk, api_key.pk)


class ApiKeyAuthenticationTests(ApiKeyTestMixin, TestCase):
    def setUp(self) -> None:
        self.factory = APIRequestFactory()

    def test_authenticate_returns_user_and_key(self) -> None:
        api_key = self.create_key()
        request = self.factory.get("/api/usage/daily", HTTP_X_API_KEY=api_key.key)

        user, auth = ApiKeyAuthentication().authenticate(request)

        self.assertEqual(user.pk, api_key.user_id)
        self.assertEqual(auth.pk, api_key.pk)
        api_key.refresh_from_db()
        self.assertIsNotNone(api_key.last_used_at)

    def test_last_used_failure_does_not_fail_authentication(self) -> None:
        api_key = self.create_key()
        request = self.factory.get("/api/usage/daily", HTTP_X_API_KEY=api_key.key)

        with mock.patch.object(ApiKey, "mark_used", side_effect=DatabaseError("locked")):
            with self.assertLogs("accounts.authentication", level="WARNING"):
                user, _ = ApiKeyAuthentication().authenticate(request)

        self.assertEqual(user.pk, api_key.user_id)


@override_settings(AUDIT_ENABLED=False)
class ValidateEndpointTests(ApiKeyTestMixin, TestCase):
    def setUp(self) -> None:
        self.client = APIClient()

    def test_valid_key(self) -> None:
        api_key = self.create_key()

        response = self.client.post("/api/auth/validate", HTTP_X_API_KEY=api_key.key)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "API key is valid")
        self.assertEqual(
            body["user"],
            {"id": api_key.user_id, "email": api_key.user.email, "name": "Sam Applicant"},
        )

    def test_missing_key_payload(self) -> None:
        response = self.client.post("/api/auth/validate")

        self.assertEqual(response.status_code, 401)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["errorCode"], "MISSING_API_KEY")
        self.assertEqual(body["message"], "API key is required")

    def test_unverified_user_payload(self) -> None:
        api_key = self.create_key(verified=False)

        response = self.client.post("/api/auth/validate", HTTP_X_API_KEY=api_key.key)

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["errorCode"], "USER_NOT_VERIFIED")

    def test_protected_endpoint_requires_key(self) -> None:
        response = self.client.post("/api/chat", {"question": "hi"}, format="json")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["errorCode"], "MISSING_API_KEY")
