from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest import mock

from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone

from subjects.models import Task
from trainees import services
from trainees.models import SubjectProgress, TaskProgress
from trainees.tests import factories
from traininghub.errors import (
    AuthorizationDenied,
    NotFound,
    ProgressInitializationFailed,
    ValidationFailed,
)


class OpenSubjectTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=2)
        self.trainee = self.setup["trainee"]
        self.course = self.setup["course"]
        self.subject = self.setup["subject"]

    def test_first_visit_creates_progress_rows(self):
        page = services.open_subject(self.trainee, self.course.pk, self.subject.pk)

        progress = SubjectProgress.objects.get(user=self.trainee)
        self.assertEqual(page.subject_progress, progress)
        self.assertEqual(progress.status, SubjectProgress.Status.NOT_STARTED)
        self.assertIsNone(progress.started_at)

        task_progresses = TaskProgress.objects.filter(user=self.trainee)
        self.assertEqual(task_progresses.count(), 2)
        self.assertTrue(
            all(row.status == TaskProgress.Status.NOT_DONE for row in task_progresses)
        )
        self.assertEqual(set(page.task_progresses), {task.pk for task in self.setup["tasks"]})

    def test_repeated_visits_do_not_duplicate_rows(self):
        for _ in range(3):
            services.open_subject(self.trainee, self.course.pk, self.subject.pk)

        self.assertEqual(SubjectProgress.objects.filter(user=self.trainee).count(), 1)
        self.assertEqual(TaskProgress.objects.filter(user=self.trainee).count(), 2)

    def test_new_task_is_filled_on_next_visit(self):
        services.open_subject(self.trainee, self.course.pk, self.subject.pk)
        extra = factories.create_course_task(self.setup["course_subject"], "Extra")

        page = services.open_subject(self.trainee, self.course.pk, self.subject.pk)

        self.assertIn(extra.pk, page.task_progresses)
        self.assertEqual(TaskProgress.objects.filter(user=self.trainee).count(), 3)

    def test_deleted_tasks_are_skipped(self):
        self.setup["tasks"][0].delete()

        page = services.open_subject(self.trainee, self.course.pk, self.subject.pk)

        self.assertEqual([task.pk for task in page.tasks], [self.setup["tasks"][1].pk])
        self.assertEqual(TaskProgress.objects.filter(user=self.trainee).count(), 1)

    def test_not_enrolled_user_gets_a_pure_read(self):
        outsider = factories.create_user()

        page = services.open_subject(outsider, self.course.pk, self.subject.pk)

        self.assertFalse(page.is_enrolled)
        self.assertEqual(len(page.tasks), 2)
        self.assertIsNone(page.subject_progress)
        self.assertFalse(SubjectProgress.objects.filter(user=outsider).exists())
        self.assertFalse(TaskProgress.objects.filter(user=outsider).exists())

    def test_subject_not_offered_by_course_has_no_tasks(self):
        other_subject = factories.create_subject()
        outsider = factories.create_user()

        page = services.open_subject(outsider, self.course.pk, other_subject.pk)

        self.assertIsNone(page.course_subject)
        self.assertEqual(page.tasks, [])
        self.assertFalse(SubjectProgress.objects.exists())

    def test_missing_course_raises_not_found(self):
        with self.assertRaises(NotFound) as ctx:
            services.open_subject(self.trainee, 999999, self.subject.pk)
        self.assertEqual(ctx.exception.fallback_url, "/")

    def test_missing_subject_falls_back_to_course_page(self):
        with self.assertRaises(NotFound) as ctx:
            services.open_subject(self.trainee, self.course.pk, 999999)
        self.assertEqual(ctx.exception.fallback_url, self.course.get_absolute_url())

    def test_deleted_subject_is_not_found(self):
        self.subject.delete()

        with self.assertRaises(NotFound):
            services.open_subject(self.trainee, self.course.pk, self.subject.pk)

    def test_failed_gap_fill_rolls_back_subject_progress(self):
        with mock.patch.object(
            TaskProgress.objects, "bulk_create", side_effect=IntegrityError("boom")
        ):
            with self.assertLogs("trainees.services", level="ERROR"):
                with self.assertRaises(ProgressInitializationFailed) as ctx:
                    services.open_subject(self.trainee, self.course.pk, self.subject.pk)

        self.assertEqual(ctx.exception.message_kind, "cannot_proceed")
        self.assertEqual(ctx.exception.fallback_url, self.course.get_absolute_url())
        self.assertFalse(SubjectProgress.objects.exists())
        self.assertFalse(TaskProgress.objects.exists())


class FillTaskGapsTests(TestCase):
    def test_existing_rows_are_kept(self):
        setup = factories.build_training_setup(task_count=3)
        progress = factories.create_subject_progress(setup["trainee"], setup["course_subject"])
        existing = factories.create_task_progress(setup["trainee"], setup["tasks"][0], progress)
        existing.status = TaskProgress.Status.DONE
        existing.save()

        created = services.fill_task_gaps(progress)

        self.assertEqual(created, 2)
        existing.refresh_from_db()
        self.assertEqual(existing.status, TaskProgress.Status.DONE)
        self.assertEqual(TaskProgress.objects.filter(subject_progress=progress).count(), 3)

    def test_subject_without_tasks_creates_nothing(self):
        setup = factories.build_training_setup(task_count=0)
        progress = factories.create_subject_progress(setup["trainee"], setup["course_subject"])

        self.assertEqual(services.fill_task_gaps(progress), 0)


class MarkSubjectInProgressTests(TestCase):
    def setUp(self):
        setup = factories.build_training_setup()
        self.progress = factories.create_subject_progress(setup["trainee"], setup["course_subject"])

    def test_transition_happens_once(self):
        self.assertTrue(services.mark_subject_in_progress(self.progress))
        self.assertEqual(self.progress.status, SubjectProgress.Status.IN_PROGRESS)
        self.assertEqual(self.progress.started_at, timezone.localdate())

        self.assertFalse(services.mark_subject_in_progress(self.progress))

    def test_started_at_is_not_overwritten(self):
        SubjectProgress.objects.filter(pk=self.progress.pk).update(started_at=date(2020, 1, 2))

        services.mark_subject_in_progress(self.progress)

        self.assertEqual(self.progress.started_at, date(2020, 1, 2))
        self.assertEqual(self.progress.status, SubjectProgress.Status.IN_PROGRESS)

    def test_completed_subject_is_left_alone(self):
        SubjectProgress.objects.filter(pk=self.progress.pk).update(
            status=SubjectProgress.Status.COMPLETED
        )

        self.assertFalse(services.mark_subject_in_progress(self.progress))
        self.assertEqual(self.progress.status, SubjectProgress.Status.COMPLETED)
        self.assertIsNone(self.progress.started_at)


class CompleteSubjectTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup()
        self.progress = factories.create_subject_progress(
            self.setup["trainee"],
            self.setup["course_subject"],
            status=SubjectProgress.Status.IN_PROGRESS,
        )

    def test_supervisor_completes_subject(self):
        progress = services.complete_subject(self.setup["supervisor"], self.progress, "87.5")

        self.assertEqual(progress.status, SubjectProgress.Status.COMPLETED)
        self.assertEqual(progress.score, Decimal("87.50"))
        self.assertIsNotNone(progress.completed_at)

    def test_score_above_maximum_is_rejected(self):
        with self.assertRaises(ValidationFailed):
            services.complete_subject(self.setup["supervisor"], self.progress, "101")

    def test_non_numeric_score_is_rejected(self):
        with self.assertRaises(ValidationFailed):
            services.complete_subject(self.setup["supervisor"], self.progress, "great")

    def test_not_started_subject_cannot_be_completed(self):
        SubjectProgress.objects.filter(pk=self.progress.pk).update(
            status=SubjectProgress.Status.NOT_STARTED
        )

        with self.assertRaises(ValidationFailed):
            services.complete_subject(self.setup["supervisor"], self.progress, "50")

    def test_unassigned_supervisor_is_denied(self):
        stranger = factories.create_user(role="supervisor")

        with self.assertRaises(AuthorizationDenied):
            services.complete_subject(stranger, self.progress, "50")

        self.progress.refresh_from_db()
        self.assertEqual(self.progress.status, SubjectProgress.Status.IN_PROGRESS)

    def test_trainee_cannot_score_own_subject(self):
        with self.assertRaises(AuthorizationDenied):
            services.complete_subject(self.setup["trainee"], self.progress, "100")


class BareSubjectTaskTests(TestCase):
    def test_subject_tasks_do_not_leak_into_course_subject(self):
        setup = factories.build_training_setup(task_count=1)
        Task.objects.create(subject=setup["subject"], name="Catalog task")

        page = services.open_subject(setup["trainee"], setup["course"].pk, setup["subject"].pk)

        self.assertEqual([task.pk for task in page.tasks], [setup["tasks"][0].pk])
