from __future__ import annotations

import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone

from trainees import task_updates
from trainees.models import SubjectProgress, TaskDocument, TaskProgress
from trainees.services import open_subject
from trainees.tests import factories
from traininghub.errors import NotFound, ValidationFailed

MEDIA_ROOT = tempfile.mkdtemp()


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class TaskUpdateTestCase(TestCase):
    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        self.setup = factories.build_training_setup(task_count=2)
        self.trainee = self.setup["trainee"]
        self.task = self.setup["tasks"][0]
        page = open_subject(self.trainee, self.setup["course"].pk, self.setup["subject"].pk)
        self.subject_progress = page.subject_progress

    def refresh_subject_progress(self) -> SubjectProgress:
        self.subject_progress.refresh_from_db()
        return self.subject_progress

    def task_progress(self) -> TaskProgress:
        return TaskProgress.objects.get(user=self.trainee, task=self.task)


class SpentTimeTests(TaskUpdateTestCase):
    def test_first_update_starts_subject_once(self):
        result = task_updates.set_spent_time(
            self.trainee, self.task.pk, self.subject_progress.pk, "15"
        )

        self.assertTrue(result.success)
        self.assertEqual(result.message_kind, "spent_time_updated")
        self.assertEqual(self.task_progress().spent_time, 15)
        progress = self.refresh_subject_progress()
        self.assertEqual(progress.status, SubjectProgress.Status.IN_PROGRESS)
        self.assertEqual(progress.started_at, timezone.localdate())

        SubjectProgress.objects.filter(pk=progress.pk).update(started_at="2021-03-04")
        result = task_updates.set_spent_time(
            self.trainee, self.task.pk, self.subject_progress.pk, "30"
        )

        self.assertTrue(result.success)
        self.assertEqual(self.task_progress().spent_time, 30)
        self.assertEqual(str(self.refresh_subject_progress().started_at), "2021-03-04")

    def test_blank_value_is_rejected(self):
        result = task_updates.set_spent_time(
            self.trainee, self.task.pk, self.subject_progress.pk, ""
        )

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, "spent_time_update_failed")
        self.assertIsInstance(result.error, ValidationFailed)
        self.assertEqual(
            self.refresh_subject_progress().status, SubjectProgress.Status.NOT_STARTED
        )

    def test_value_below_minimum_is_rejected(self):
        with self.settings(TRAINING={"MIN_SPENT_TIME": 5}):
            result = task_updates.set_spent_time(
                self.trainee, self.task.pk, self.subject_progress.pk, "4"
            )

        self.assertFalse(result.success)
        self.assertIsNone(self.task_progress().spent_time)

    def test_non_numeric_value_is_rejected(self):
        result = task_updates.set_spent_time(
            self.trainee, self.task.pk, self.subject_progress.pk, "a while"
        )

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, "spent_time_update_failed")


class StatusTests(TaskUpdateTestCase):
    def test_done_code_marks_task_done(self):
        result = task_updates.set_status(self.trainee, self.task.pk, self.subject_progress.pk, "1")

        self.assertTrue(result.success)
        self.assertEqual(result.message_kind, "status_updated")
        self.assertEqual(self.task_progress().status, TaskProgress.Status.DONE)
        self.assertEqual(
            self.refresh_subject_progress().status, SubjectProgress.Status.IN_PROGRESS
        )

    def test_any_other_code_marks_task_not_done(self):
        task_updates.set_status(self.trainee, self.task.pk, self.subject_progress.pk, "1")

        for raw in ("0", "7", "done"):
            result = task_updates.set_status(
                self.trainee, self.task.pk, self.subject_progress.pk, raw
            )
            self.assertTrue(result.success)
            self.assertEqual(self.task_progress().status, TaskProgress.Status.NOT_DONE)

    def test_leading_integer_selects_the_code(self):
        for raw in ("1.0", "1abc", " 1 "):
            task_updates.set_status(self.trainee, self.task.pk, self.subject_progress.pk, "0")
            result = task_updates.set_status(
                self.trainee, self.task.pk, self.subject_progress.pk, raw
            )
            self.assertTrue(result.success)
            self.assertEqual(self.task_progress().status, TaskProgress.Status.DONE, raw)

    def test_parse_status_code(self):
        self.assertEqual(task_updates.parse_status_code("1.0"), 1)
        self.assertEqual(task_updates.parse_status_code("12abc"), 12)
        self.assertEqual(task_updates.parse_status_code("-3"), -3)
        self.assertEqual(task_updates.parse_status_code("abc1"), 0)
        self.assertEqual(task_updates.parse_status_code(1), 1)

    def test_done_code_follows_configuration(self):
        with self.settings(TRAINING={"TASK_STATUS_DONE": 9}):
            task_updates.set_status(self.trainee, self.task.pk, self.subject_progress.pk, "9")

        self.assertEqual(self.task_progress().status, TaskProgress.Status.DONE)

    def test_blank_status_is_rejected(self):
        result = task_updates.set_status(self.trainee, self.task.pk, self.subject_progress.pk, "")

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, "status_update_failed")
        self.assertEqual(
            self.refresh_subject_progress().status, SubjectProgress.Status.NOT_STARTED
        )


class DocumentTests(TaskUpdateTestCase):
    def upload(self, *, name="report.pdf", content=b"%PDF-1.4 report", content_type="application/pdf"):
        return SimpleUploadedFile(name, content, content_type=content_type)

    def test_attach_document_stores_file_and_starts_subject(self):
        result = task_updates.attach_document(
            self.trainee, self.task.pk, self.subject_progress.pk, self.upload()
        )

        self.assertTrue(result.success)
        self.assertEqual(result.message_kind, "document_updated")
        document = TaskDocument.objects.get()
        self.assertEqual(document.filename, "report.pdf")
        self.assertEqual(document.content_type, "application/pdf")
        self.assertTrue(document.file.name.startswith(f"task_documents/{self.trainee.pk}/"))
        self.assertEqual(
            self.refresh_subject_progress().status, SubjectProgress.Status.IN_PROGRESS
        )

    def test_disallowed_type_is_rejected_without_side_effects(self):
        result = task_updates.attach_document(
            self.trainee,
            self.task.pk,
            self.subject_progress.pk,
            self.upload(name="run.exe", content_type="application/x-msdownload"),
        )

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, "document_update_failed")
        self.assertIsInstance(result.error, ValidationFailed)
        self.assertFalse(TaskDocument.objects.exists())
        self.assertEqual(
            self.refresh_subject_progress().status, SubjectProgress.Status.NOT_STARTED
        )

    def test_oversized_document_is_rejected(self):
        with self.settings(TRAINING={"MAX_DOCUMENT_SIZE": 4}):
            result = task_updates.attach_document(
                self.trainee, self.task.pk, self.subject_progress.pk, self.upload()
            )

        self.assertFalse(result.success)
        self.assertFalse(TaskDocument.objects.exists())

    def test_missing_file_is_rejected(self):
        result = task_updates.attach_document(
            self.trainee, self.task.pk, self.subject_progress.pk, None
        )

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, "document_update_failed")

    def test_detach_removes_document_without_transition(self):
        task_progress = self.task_progress()
        document = TaskDocument.objects.create(
            task_progress=task_progress,
            file=self.upload(),
            filename="report.pdf",
            content_type="application/pdf",
            size=15,
        )
        stored_name = document.file.name
        storage = document.file.storage

        result = task_updates.detach_document(
            self.trainee, self.task.pk, self.subject_progress.pk, document.pk
        )

        self.assertTrue(result.success)
        self.assertEqual(result.message_kind, "document_destroyed")
        self.assertFalse(TaskDocument.objects.exists())
        self.assertFalse(storage.exists(stored_name))
        self.assertEqual(
            self.refresh_subject_progress().status, SubjectProgress.Status.NOT_STARTED
        )

    def test_detach_unknown_document_reports_not_found(self):
        result = task_updates.detach_document(
            self.trainee, self.task.pk, self.subject_progress.pk, 424242
        )

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, "document_not_found")
        self.assertIsInstance(result.error, NotFound)

    def test_detach_document_of_another_task_reports_not_found(self):
        other_progress = TaskProgress.objects.get(user=self.trainee, task=self.setup["tasks"][1])
        document = TaskDocument.objects.create(
            task_progress=other_progress,
            file=self.upload(),
            filename="report.pdf",
            content_type="application/pdf",
            size=15,
        )

        result = task_updates.detach_document(
            self.trainee, self.task.pk, self.subject_progress.pk, document.pk
        )

        self.assertFalse(result.success)
        self.assertTrue(TaskDocument.objects.filter(pk=document.pk).exists())


class TaskProgressLookupTests(TaskUpdateTestCase):
    def test_missing_row_is_created(self):
        TaskProgress.objects.filter(user=self.trainee, task=self.task).delete()

        task_progress = task_updates.get_or_create_task_progress(
            self.trainee, self.task.pk, self.subject_progress.pk
        )

        self.assertEqual(task_progress.subject_progress_id, self.subject_progress.pk)
        self.assertEqual(task_progress.status, TaskProgress.Status.NOT_DONE)

    def test_foreign_subject_progress_is_not_found(self):
        other = factories.create_user()

        with self.assertRaises(NotFound):
            task_updates.get_or_create_task_progress(other, self.task.pk, self.subject_progress.pk)

    def test_non_numeric_ids_are_not_found(self):
        with self.assertRaises(NotFound):
            task_updates.get_or_create_task_progress(self.trainee, self.task.pk, "abc")
        with self.assertRaises(NotFound):
            task_updates.get_or_create_task_progress(self.trainee, self.task.pk, None)
        with self.assertRaises(NotFound):
            task_updates.get_or_create_task_progress(
                self.trainee, "x1", self.subject_progress.pk
            )

    def test_non_numeric_subject_progress_reports_cannot_do(self):
        result = task_updates.set_spent_time(self.trainee, self.task.pk, "abc", "15")

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, task_updates.CANNOT_DO_THIS_TASK)

    def test_update_by_another_user_is_refused(self):
        other = factories.create_user()

        result = task_updates.set_status(other, self.task.pk, self.subject_progress.pk, "1")

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, task_updates.CANNOT_DO_THIS_TASK)
        self.assertEqual(self.task_progress().status, TaskProgress.Status.NOT_DONE)

    def test_task_outside_subject_is_not_found(self):
        other_setup = factories.build_training_setup(task_count=1)

        result = task_updates.set_status(
            self.trainee, other_setup["tasks"][0].pk, self.subject_progress.pk, "1"
        )

        self.assertFalse(result.success)
        self.assertEqual(result.message_kind, task_updates.CANNOT_DO_THIS_TASK)
