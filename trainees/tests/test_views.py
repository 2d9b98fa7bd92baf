from __future__ import annotations

from django.contrib.messages import get_messages
from django.test import TestCase
from django.urls import reverse

from trainees.models import SubjectProgress, TaskProgress
from trainees.tests import factories


class SubjectDetailViewTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=2)
        self.url = reverse(
            "trainees:subject-detail",
            kwargs={"course_id": self.setup["course"].pk, "subject_id": self.setup["subject"].pk},
        )

    def test_login_required(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("login"), response["Location"])

    def test_enrolled_trainee_sees_tasks_and_gets_progress(self):
        self.client.force_login(self.setup["trainee"])

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Task 0")
        self.assertContains(response, "<strong>guide</strong>", html=True)
        self.assertEqual(SubjectProgress.objects.count(), 1)
        self.assertEqual(TaskProgress.objects.count(), 2)

    def test_missing_subject_redirects_to_course_with_message(self):
        self.client.force_login(self.setup["trainee"])
        url = reverse(
            "trainees:subject-detail",
            kwargs={"course_id": self.setup["course"].pk, "subject_id": 999999},
        )

        response = self.client.get(url)

        self.assertRedirects(response, self.setup["course"].get_absolute_url())
        messages = [str(message) for message in get_messages(response.wsgi_request)]
        self.assertEqual(messages, ["The requested page is not available to you."])


class TaskUpdateViewTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=1)
        self.trainee = self.setup["trainee"]
        self.client.force_login(self.trainee)
        self.subject_url = self.setup["course_subject"].get_absolute_url()
        self.client.get(self.subject_url)
        self.subject_progress = SubjectProgress.objects.get(user=self.trainee)
        self.task = self.setup["tasks"][0]

    def url(self, name: str, **extra) -> str:
        return reverse(
            f"trainees:{name}",
            kwargs={"course_id": self.setup["course"].pk, "task_id": self.task.pk, **extra},
        )

    def test_status_update_redirects_to_subject_page(self):
        response = self.client.post(
            self.url("task-status-update"),
            {"subject_progress_id": self.subject_progress.pk, "status": "1"},
        )

        self.assertRedirects(response, self.subject_url)
        messages = [str(message) for message in get_messages(response.wsgi_request)]
        self.assertEqual(messages, ["Task status updated."])
        self.assertEqual(
            TaskProgress.objects.get(task=self.task).status, TaskProgress.Status.DONE
        )

    def test_failed_spent_time_update_flashes_error(self):
        response = self.client.post(
            self.url("task-spent-time-update"),
            {"subject_progress_id": self.subject_progress.pk, "spent_time": ""},
        )

        self.assertRedirects(response, self.subject_url)
        messages = list(get_messages(response.wsgi_request))
        self.assertEqual(len(messages), 1)
        self.assertIn("error", messages[0].tags)

    def test_unknown_subject_progress_redirects_to_course_page(self):
        response = self.client.post(
            self.url("task-status-update"),
            {"subject_progress_id": 999999, "status": "1"},
        )

        self.assertRedirects(response, self.setup["course"].get_absolute_url())

    def test_non_numeric_subject_progress_redirects_to_course_page(self):
        response = self.client.post(
            self.url("task-status-update"),
            {"subject_progress_id": "abc", "status": "1"},
        )

        self.assertRedirects(response, self.setup["course"].get_absolute_url())
        messages = [str(message) for message in get_messages(response.wsgi_request)]
        self.assertEqual(messages, ["You cannot work on this task."])

    def test_missing_subject_progress_field_redirects_to_course_page(self):
        response = self.client.post(self.url("task-spent-time-update"), {"spent_time": "15"})

        self.assertRedirects(response, self.setup["course"].get_absolute_url())
        self.assertFalse(TaskProgress.objects.filter(spent_time=15).exists())

    def test_unknown_course_redirects_home(self):
        url = reverse(
            "trainees:task-status-update",
            kwargs={"course_id": 999999, "task_id": self.task.pk},
        )

        response = self.client.post(url, {"subject_progress_id": 999999, "status": "1"})

        self.assertRedirects(response, reverse("home"))

    def test_get_is_not_allowed(self):
        response = self.client.get(self.url("task-status-update"))

        self.assertEqual(response.status_code, 405)

    def test_destroy_unknown_document_flashes_not_found(self):
        response = self.client.post(
            self.url("task-document-destroy", document_id=424242),
            {"subject_progress_id": self.subject_progress.pk},
        )

        self.assertRedirects(response, self.subject_url)
        messages = [str(message) for message in get_messages(response.wsgi_request)]
        self.assertTrue(messages[0].startswith("Document not found."))


class CourseDetailViewTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=2)
        self.url = self.setup["course"].get_absolute_url()

    def test_enrolled_trainee_sees_subjects(self):
        self.client.force_login(self.setup["trainee"])

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, self.setup["subject"].name)
        self.assertEqual(response.context["rows"][0].task_count, 2)

    def test_not_enrolled_trainee_is_redirected_home(self):
        self.client.force_login(factories.create_user())

        response = self.client.get(self.url)

        self.assertRedirects(response, reverse("home"))

    def test_assigned_supervisor_can_manage(self):
        self.client.force_login(self.setup["supervisor"])

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.context["can_manage"])


class HomeViewTests(TestCase):
    def test_lists_enrollments(self):
        setup = factories.build_training_setup()
        self.client.force_login(setup["trainee"])

        response = self.client.get(reverse("home"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, setup["course"].name)
