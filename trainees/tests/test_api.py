from __future__ import annotations

from django.test import TestCase
from django.urls import reverse

from courses.models import CourseEnrollment
from subjects.models import Task
from trainees.models import SubjectProgress, TaskProgress
from trainees.tests import factories


class SubjectProgressApiTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=2)
        self.url = reverse(
            "api-subject-progress",
            kwargs={"course_id": self.setup["course"].pk, "subject_id": self.setup["subject"].pk},
        )

    def test_requires_authentication(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 403)

    def test_enrolled_trainee_gets_tasks_with_progress(self):
        self.client.force_login(self.setup["trainee"])

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["enrolled"])
        self.assertEqual(payload["subject_progress"]["status"], "not_started")
        self.assertEqual(len(payload["tasks"]), 2)
        self.assertEqual(payload["tasks"][0]["progress"]["status"], "not_done")

    def test_not_enrolled_user_gets_catalog_only(self):
        self.client.force_login(factories.create_user())

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertFalse(payload["enrolled"])
        self.assertIsNone(payload["subject_progress"])
        self.assertIsNone(payload["tasks"][0]["progress"])
        self.assertFalse(SubjectProgress.objects.exists())

    def test_missing_course_is_404(self):
        self.client.force_login(self.setup["trainee"])
        url = reverse(
            "api-subject-progress",
            kwargs={"course_id": 999999, "subject_id": self.setup["subject"].pk},
        )

        response = self.client.get(url)

        self.assertEqual(response.status_code, 404)


class TaskUpdateApiTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=1)
        self.trainee = self.setup["trainee"]
        self.client.force_login(self.trainee)
        self.subject_progress = factories.create_subject_progress(
            self.trainee, self.setup["course_subject"]
        )
        self.task = self.setup["tasks"][0]

    def url(self, name: str, **extra) -> str:
        return reverse(
            name,
            kwargs={
                "subject_progress_id": self.subject_progress.pk,
                "task_id": self.task.pk,
                **extra,
            },
        )

    def test_spent_time_update(self):
        response = self.client.post(self.url("api-task-spent-time"), {"spent_time": "15"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["message_kind"], "spent_time_updated")
        self.assertEqual(payload["task_progress"]["spent_time"], 15)
        self.subject_progress.refresh_from_db()
        self.assertEqual(self.subject_progress.status, SubjectProgress.Status.IN_PROGRESS)

    def test_invalid_spent_time_is_400(self):
        response = self.client.post(self.url("api-task-spent-time"), {"spent_time": "0"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message_kind"], "spent_time_update_failed")

    def test_status_update_creates_missing_task_progress(self):
        response = self.client.post(self.url("api-task-status"), {"status": "1"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            TaskProgress.objects.get(user=self.trainee, task=self.task).status,
            TaskProgress.Status.DONE,
        )

    def test_unknown_document_is_reported_in_body(self):
        response = self.client.delete(self.url("api-task-document-detail", document_id=424242))

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertFalse(payload["success"])
        self.assertEqual(payload["message_kind"], "document_not_found")

    def test_other_user_cannot_update(self):
        self.client.force_login(factories.create_user())

        response = self.client.post(self.url("api-task-status"), {"status": "1"})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message_kind"], "cannot_do_this_task")

    def test_foreign_and_missing_subject_progress_look_the_same(self):
        self.client.force_login(factories.create_user())
        missing_url = reverse(
            "api-task-status",
            kwargs={"subject_progress_id": 999999, "task_id": self.task.pk},
        )

        foreign = self.client.post(self.url("api-task-status"), {"status": "1"})
        missing = self.client.post(missing_url, {"status": "1"})

        self.assertEqual(foreign.status_code, 404)
        self.assertEqual(foreign.status_code, missing.status_code)
        self.assertEqual(foreign.json(), missing.json())
        self.assertFalse(TaskProgress.objects.exists())


class EnrollmentApiTests(TestCase):
    def setUp(self):
        self.supervisor = factories.create_user(role="supervisor")
        self.course = factories.create_course(supervisor=self.supervisor)
        self.trainee = factories.create_user()
        self.url = reverse("api-enrollment-create", kwargs={"course_id": self.course.pk})

    def test_supervisor_enrolls_trainee_once(self):
        self.client.force_login(self.supervisor)

        first = self.client.post(self.url, {"user_id": self.trainee.pk})
        second = self.client.post(self.url, {"user_id": self.trainee.pk})

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(CourseEnrollment.objects.filter(user=self.trainee).count(), 1)

    def test_unassigned_supervisor_gets_not_found(self):
        self.client.force_login(factories.create_user(role="supervisor"))

        response = self.client.post(self.url, {"user_id": self.trainee.pk})

        self.assertEqual(response.status_code, 404)
        self.assertFalse(CourseEnrollment.objects.exists())

    def test_existing_and_missing_course_look_the_same(self):
        self.client.force_login(factories.create_user(role="supervisor"))
        missing_url = reverse("api-enrollment-create", kwargs={"course_id": 999999})

        existing = self.client.post(self.url, {"user_id": self.trainee.pk})
        missing = self.client.post(missing_url, {"user_id": self.trainee.pk})

        self.assertEqual(existing.status_code, 404)
        self.assertEqual(existing.status_code, missing.status_code)
        self.assertEqual(existing.json(), missing.json())

    def test_invalid_body_does_not_reveal_course(self):
        self.client.force_login(factories.create_user(role="supervisor"))

        response = self.client.post(self.url, {"user_id": "abc"})

        self.assertEqual(response.status_code, 404)

    def test_supervisor_cannot_be_enrolled(self):
        self.client.force_login(self.supervisor)

        response = self.client.post(self.url, {"user_id": self.supervisor.pk})

        self.assertEqual(response.status_code, 400)


class SubjectCompleteApiTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup()
        self.subject_progress = factories.create_subject_progress(
            self.setup["trainee"],
            self.setup["course_subject"],
            status=SubjectProgress.Status.IN_PROGRESS,
        )
        self.url = reverse(
            "api-subject-complete", kwargs={"subject_progress_id": self.subject_progress.pk}
        )

    def test_supervisor_completes_subject(self):
        self.client.force_login(self.setup["supervisor"])

        response = self.client.post(self.url, {"score": "90"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "completed")

    def test_trainee_gets_not_found(self):
        self.client.force_login(self.setup["trainee"])

        response = self.client.post(self.url, {"score": "100"})

        self.assertEqual(response.status_code, 404)
        self.subject_progress.refresh_from_db()
        self.assertEqual(self.subject_progress.status, SubjectProgress.Status.IN_PROGRESS)

    def test_existing_and_missing_subject_progress_look_the_same(self):
        self.client.force_login(self.setup["trainee"])
        missing_url = reverse("api-subject-complete", kwargs={"subject_progress_id": 999999})

        existing = self.client.post(self.url, {"score": "100"})
        missing = self.client.post(missing_url, {"score": "100"})

        self.assertEqual(existing.status_code, missing.status_code)
        self.assertEqual(existing.json(), missing.json())
        self.assertNotIn("update_score", str(existing.json()))


class SubjectTaskDestroyApiTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=0)
        self.subject = self.setup["subject"]
        self.task = Task.objects.create(subject=self.subject, name="Setup")
        self.url = reverse("api-subject-task-destroy", kwargs={"subject_id": self.subject.pk})

    def test_assigned_supervisor_destroys_tasks(self):
        self.client.force_login(self.setup["supervisor"])

        response = self.client.post(
            self.url, {"task_ids": [self.task.pk]}, content_type="application/json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"deleted": 1})
        self.assertFalse(Task.objects.filter(pk=self.task.pk).exists())

    def test_unassigned_supervisor_gets_not_found(self):
        self.client.force_login(factories.create_user(role="supervisor"))
        missing_url = reverse("api-subject-task-destroy", kwargs={"subject_id": 999999})

        existing = self.client.post(
            self.url, {"task_ids": [self.task.pk]}, content_type="application/json"
        )
        missing = self.client.post(
            missing_url, {"task_ids": [self.task.pk]}, content_type="application/json"
        )

        self.assertEqual(existing.status_code, 404)
        self.assertEqual(existing.json(), missing.json())
        self.assertTrue(Task.objects.filter(pk=self.task.pk).exists())

    def test_empty_list_is_rejected(self):
        self.client.force_login(self.setup["supervisor"])

        response = self.client.post(self.url, {"task_ids": []}, content_type="application/json")

        self.assertEqual(response.status_code, 400)
