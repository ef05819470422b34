import threading
import time
from datetime import timedelta
from unittest import mock

from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from accounts.models import User
from audit.entries import AuditEntry
from audit.models import AuditRecord
from audit.tasks import dispatch_audit_record, get_audit_executor, persist_audit_record


def make_entry(**overrides) -> AuditEntry:
    fields = {
        "request_id": "req-1700000000000-abcdefghi",
        "service": "KEYWORDS",
        "method": "POST",
        "path": "/api/keywords",
        "status_code": 200,
        "response_time_ms": 85,
        "request_body": {"jobDescription": "Engineer", "skills": ["python"]},
        "response_body": {"success": True},
        "request_headers": {"content-type": "application/json"},
        "ip_address": "10.0.0.1",
        "user_agent": "ext/1.0",
    }
    fields.update(overrides)
    return AuditEntry(**fields)


class PersistAuditRecordTests(TestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(username="sam", email="sam@example.com")

    @mock.patch("audit.tasks.notify_from_audit_entry", return_value=False)
    def test_entry_is_stored(self, notify) -> None:
        entry = make_entry(user_id=self.user.pk, user_email=self.user.email)

        record = persist_audit_record(entry)

        record.refresh_from_db()
        self.assertEqual(record.user, self.user)
        self.assertEqual(record.service, "KEYWORDS")
        self.assertEqual(record.request_body["skills"], ["python"])
        self.assertEqual(record.request_headers, {"content-type": "application/json"})
        self.assertEqual(record.response_time_ms, 85)
        self.assertIsNone(record.deleted_at)
        notify.assert_called_once_with(entry)

    @mock.patch("audit.tasks.notify_from_audit_entry")
    def test_write_failure_is_logged_and_alert_still_runs(self, notify) -> None:
        entry = make_entry(status_code=500, error_code="DATABASE_ERROR")

        with mock.patch.object(AuditRecord.objects, "create", side_effect=RuntimeError("db down")):
            with self.assertLogs("audit.tasks", level="ERROR") as logs:
                self.assertIsNone(persist_audit_record(entry))

        self.assertIn("Failed to create audit log entry", logs.output[0])
        notify.assert_called_once_with(entry)

    @mock.patch("audit.tasks.notify_from_audit_entry", side_effect=RuntimeError("boom"))
    def test_alert_failure_is_logged(self, notify) -> None:
        with self.assertLogs("audit.tasks", level="ERROR") as logs:
            record = persist_audit_record(make_entry(status_code=500))

        self.assertIsNotNone(record)
        self.assertIn("Alert dispatch failed", logs.output[0])


class AuditRecordTests(TestCase):
    def setUp(self) -> None:
        self.record = AuditRecord.objects.create(**make_entry().model_fields())

    def test_records_are_immutable(self) -> None:
        self.record.status_code = 500
        with self.assertRaises(ValueError):
            self.record.save()

    def test_soft_delete(self) -> None:
        self.record.soft_delete()

        self.assertIsNotNone(AuditRecord.objects.get(pk=self.record.pk).deleted_at)
        self.assertFalse(AuditRecord.objects.active().exists())

    def test_queryset_soft_delete_skips_deleted_rows(self) -> None:
        AuditRecord.objects.create(**make_entry(request_id="req-2").model_fields())
        self.record.soft_delete()

        self.assertEqual(AuditRecord.objects.all().soft_delete(), 1)

    def test_created_today(self) -> None:
        AuditRecord.objects.create(
            **make_entry(request_id="req-old", created_at=timezone.now() - timedelta(days=2)).model_fields()
        )
        self.assertEqual(list(AuditRecord.objects.created_today()), [self.record])


class DispatchAuditRecordTests(TestCase):
    @override_settings(AUDIT_TASK_BACKEND="django_q")
    @mock.patch("audit.tasks.async_task")
    def test_django_q_backend_queues_task(self, async_task) -> None:
        entry = make_entry()

        self.assertIsNone(dispatch_audit_record(entry))

        async_task.assert_called_once_with(
            "audit.tasks.persist_audit_record",
            entry,
            task_name=f"audit-{entry.request_id}",
        )

    @override_settings(AUDIT_TASK_BACKEND="django_q")
    @mock.patch("audit.tasks.async_task", side_effect=RuntimeError("broker down"))
    def test_queue_failure_is_logged(self, async_task) -> None:
        with self.assertLogs("audit.tasks", level="ERROR"):
            self.assertIsNone(dispatch_audit_record(make_entry()))


class AuditWorkerPoolTests(SimpleTestCase):
    def setUp(self) -> None:
        get_audit_executor.cache_clear()
        self.addCleanup(get_audit_executor.cache_clear)

    @override_settings(AUDIT_TASK_BACKEND="thread", AUDIT_MAX_WORKERS=2)
    def test_slow_writes_share_a_bounded_pool(self) -> None:
        worker_names = set()
        lock = threading.Lock()

        def slow_create(**fields):
            with lock:
                worker_names.add(threading.current_thread().name)
            time.sleep(0.05)

        executor = get_audit_executor()
        self.addCleanup(executor.shutdown, wait=True)
        with mock.patch("audit.tasks.AuditRecord") as record_model, mock.patch(
            "audit.tasks.notify_from_audit_entry", return_value=False
        ):
            record_model.objects.create.side_effect = slow_create
            futures = [
                dispatch_audit_record(make_entry(request_id=f"req-{i}")) for i in range(8)
            ]
            for future in futures:
                future.result(timeout=5)

            self.assertEqual(record_model.objects.create.call_count, 8)
        self.assertLessEqual(len(worker_names), 2)
        self.assertTrue(all(name.startswith("audit") for name in worker_names))
        self.assertIs(get_audit_executor(), executor)
