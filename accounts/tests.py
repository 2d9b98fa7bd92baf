from datetime import date, timedelta

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.contrib.messages import get_messages
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import RequestFactory, TestCase
from django.urls import reverse
from django.utils import timezone

from accounts.abilities import RULES, can, authorize
from accounts.context_processors import user_role
from courses.models import Course, CourseEnrollment, CourseSubject, CourseSupervisor
from daily_reports.models import DailyReport
from subjects.models import Category, Subject, Task
from trainees.models import SubjectProgress, TaskProgress
from trainees.tests import factories
from traininghub.errors import AuthorizationDenied


class UserModelTests(TestCase):
    def test_default_role_is_trainee(self):
        user = get_user_model().objects.create_user(username="t", password="pw")
        self.assertTrue(user.is_trainee)

    def test_superuser_is_admin(self):
        user = get_user_model().objects.create_superuser(
            username="root", email="root@example.com", password="pw"
        )
        self.assertTrue(user.is_admin)

    def test_email_is_unique_ignoring_case(self):
        get_user_model().objects.create_user(username="a", email="Same@Example.com")
        with self.assertRaises(IntegrityError):
            get_user_model().objects.create_user(username="b", email="same@example.COM")

    def test_blank_emails_do_not_collide(self):
        get_user_model().objects.create_user(username="a")
        get_user_model().objects.create_user(username="b")
        self.assertEqual(get_user_model().objects.count(), 2)


class TraineeAbilityTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=1)
        self.trainee = self.setup["trainee"]
        self.course = self.setup["course"]
        self.course_subject = self.setup["course_subject"]
        self.progress = factories.create_subject_progress(self.trainee, self.course_subject)
        self.task_progress = factories.create_task_progress(
            self.trainee, self.setup["tasks"][0], self.progress
        )

    def test_course_read_requires_enrollment(self):
        self.assertTrue(can(self.trainee, "read", self.course))
        self.assertTrue(can(self.trainee, "show", self.course))
        self.assertTrue(can(self.trainee, "members", self.course))
        self.assertFalse(can(self.trainee, "update", self.course))

        other_course = factories.create_course()
        self.assertFalse(can(self.trainee, "read", other_course))

    def test_subject_read_requires_enrolled_course(self):
        self.assertTrue(can(self.trainee, "read", self.setup["subject"]))
        self.assertFalse(can(self.trainee, "read", factories.create_subject()))
        self.assertFalse(can(self.trainee, "update", self.setup["subject"]))

    def test_task_progress_actions_are_limited_to_owner(self):
        for action in ("update_document", "update_status", "update_spent_time", "destroy_document"):
            self.assertTrue(can(self.trainee, action, self.task_progress))

        stranger = factories.create_user()
        self.assertFalse(can(stranger, "update_status", self.task_progress))
        self.assertFalse(can(self.trainee, "read", self.task_progress))

    def test_subject_progress_update_is_limited_to_owner(self):
        self.assertTrue(can(self.trainee, "update", self.progress))
        self.assertFalse(can(factories.create_user(), "update", self.progress))

    def test_daily_report_manage_is_limited_to_owner(self):
        report = DailyReport.objects.create(
            user=self.trainee, course=self.course, report_date=date.today(), content="Done"
        )
        self.assertTrue(can(self.trainee, "update", report))
        self.assertTrue(can(self.trainee, "destroy", report))
        self.assertFalse(can(factories.create_user(), "read", report))

    def test_trainee_cannot_touch_catalog_or_scores(self):
        self.assertFalse(can(self.trainee, "create", Subject))
        self.assertFalse(can(self.trainee, "update_score", self.course_subject))
        self.assertFalse(can(self.trainee, "create", CourseEnrollment(course=self.course)))


class SupervisorAbilityTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup()
        self.supervisor = self.setup["supervisor"]
        self.stranger = factories.create_user(role="supervisor")
        self.course = self.setup["course"]
        self.course_subject = self.setup["course_subject"]

    def test_assigned_supervisor_manages_course_subject(self):
        for action in ("read", "update", "update_score", "create_task", "finish"):
            self.assertTrue(can(self.supervisor, action, self.course_subject))

    def test_unassigned_supervisor_is_denied_course_subject_update(self):
        self.assertFalse(can(self.stranger, "update", self.course_subject))
        with self.assertRaises(AuthorizationDenied) as ctx:
            authorize(self.stranger, "update", self.course_subject)
        self.assertEqual(ctx.exception.resource_type, "CourseSubject")
        self.assertEqual(ctx.exception.status_code, 403)

    def test_course_actions_are_scoped(self):
        self.assertTrue(can(self.supervisor, "update", self.course))
        self.assertTrue(can(self.supervisor, "destroy", self.course))
        self.assertTrue(can(self.supervisor, "edit", self.course))
        self.assertFalse(can(self.stranger, "update", self.course))

    def test_class_level_checks_ignore_scope(self):
        self.assertTrue(can(self.stranger, "create", Course))
        self.assertTrue(can(self.stranger, "new", Course))
        self.assertTrue(can(self.stranger, "create", CourseSubject))

    def test_catalog_is_managed_without_scope(self):
        subject = factories.create_subject()
        self.assertTrue(can(self.stranger, "destroy", subject))
        self.assertTrue(can(self.stranger, "create", Task))
        self.assertTrue(can(self.stranger, "update", Category))

    def test_enrollment_and_supervisor_rows_are_scoped(self):
        enrollment = CourseEnrollment.objects.get(course=self.course)
        assignment = CourseSupervisor.objects.get(course=self.course)
        self.assertTrue(can(self.supervisor, "destroy", enrollment))
        self.assertTrue(can(self.supervisor, "create", assignment))
        self.assertFalse(can(self.stranger, "destroy", enrollment))

    def test_destroy_tasks_is_scoped_to_supervised_subjects(self):
        subject = self.setup["subject"]
        self.assertTrue(can(self.supervisor, "destroy_tasks", subject))
        self.assertFalse(can(self.stranger, "destroy_tasks", subject))
        self.assertTrue(can(self.stranger, "update", subject))
        self.assertTrue(can(self.stranger, "destroy_tasks", Subject))

    def test_user_actions(self):
        self.assertTrue(can(self.supervisor, "index", get_user_model()))
        self.assertTrue(can(self.supervisor, "bulk_deactivate", self.setup["trainee"]))
        self.assertFalse(can(self.supervisor, "destroy", self.setup["trainee"]))

    def test_daily_reports_are_read_only_for_course(self):
        report = DailyReport.objects.create(
            user=self.setup["trainee"],
            course=self.course,
            report_date=date.today(),
            content="Done",
        )
        self.assertTrue(can(self.supervisor, "read", report))
        self.assertFalse(can(self.supervisor, "update", report))
        self.assertFalse(can(self.stranger, "read", report))

    def test_supervisor_cannot_update_trainee_progress(self):
        progress = factories.create_subject_progress(self.setup["trainee"], self.course_subject)
        self.assertFalse(can(self.supervisor, "update", progress))
        self.assertFalse(can(self.supervisor, "update_status", TaskProgress))


class AdminAbilityTests(TestCase):
    def setUp(self):
        self.admin = factories.create_user(role="admin")
        self.setup = factories.build_training_setup()

    def test_admin_manages_everything(self):
        self.assertTrue(can(self.admin, "destroy", self.setup["course"]))
        self.assertTrue(can(self.admin, "update_score", self.setup["course_subject"]))
        self.assertTrue(can(self.admin, "anything", SubjectProgress))

    def test_admin_cannot_edit_daily_reports(self):
        report = DailyReport.objects.create(
            user=self.setup["trainee"],
            course=self.setup["course"],
            report_date=date.today(),
            content="Done",
        )
        self.assertTrue(can(self.admin, "read", report))
        self.assertFalse(can(self.admin, "update", report))
        self.assertFalse(can(self.admin, "destroy", report))


class AnonymousAbilityTests(TestCase):
    def test_anonymous_is_always_denied(self):
        anonymous = AnonymousUser()
        for rule in RULES:
            for action in rule.actions:
                self.assertFalse(can(anonymous, action, Course))
        self.assertFalse(can(None, "read", Course))


class UserRoleContextProcessorTests(TestCase):
    def test_exposes_role(self):
        request = RequestFactory().get("/")
        request.user = factories.create_user(role="supervisor")

        context = user_role(request)

        self.assertEqual(context, {"user_role": "supervisor", "user_is_manager": True})

    def test_anonymous_has_no_role(self):
        request = RequestFactory().get("/")
        request.user = AnonymousUser()

        self.assertEqual(user_role(request)["user_role"], "")


class UserProfileModelTests(TestCase):
    def test_birthday_must_be_within_valid_years(self):
        today = timezone.localdate()
        user = factories.create_user()

        user.birthday = today - timedelta(days=365 * 30)
        user.full_clean()

        for birthday in (today + timedelta(days=1), today - timedelta(days=365 * 101)):
            user.birthday = birthday
            with self.assertRaises(ValidationError) as ctx:
                user.full_clean()
            self.assertIn("birthday", ctx.exception.message_dict)

    def test_valid_years_follow_configuration(self):
        user = factories.create_user()
        user.birthday = timezone.localdate() - timedelta(days=365 * 30)

        with self.settings(TRAINING={"USER_BIRTHDAY_VALID_YEARS": 20}):
            with self.assertRaises(ValidationError):
                user.full_clean()

    def test_name_length_follows_configuration(self):
        user = factories.create_user()
        user.name = "x" * 51
        with self.assertRaises(ValidationError) as ctx:
            user.full_clean()
        self.assertIn("name", ctx.exception.message_dict)

    def test_str_prefers_name(self):
        user = factories.create_user(username="jdoe")
        self.assertEqual(str(user), "jdoe")
        user.name = "Jane Doe"
        self.assertEqual(str(user), "Jane Doe")

    def test_activate(self):
        user = factories.create_user()
        get_user_model().objects.filter(pk=user.pk).update(is_active=False, name="Kept")
        user.refresh_from_db()

        user.activate()

        user.refresh_from_db()
        self.assertTrue(user.is_active)
        self.assertEqual(user.name, "Kept")

    def test_admin_action_activates_users(self):
        admin_user = get_user_model().objects.create_superuser(
            username="root", email="root@example.com", password="pw"
        )
        inactive = factories.create_user()
        get_user_model().objects.filter(pk=inactive.pk).update(is_active=False)
        self.client.force_login(admin_user)

        response = self.client.post(
            reverse("admin:accounts_user_changelist"),
            {"action": "activate_users", "_selected_action": [inactive.pk]},
        )

        self.assertEqual(response.status_code, 302)
        inactive.refresh_from_db()
        self.assertTrue(inactive.is_active)


class ProfileViewTests(TestCase):
    def setUp(self):
        self.trainee = factories.create_user()
        self.detail_url = reverse("accounts:profile-detail", kwargs={"user_id": self.trainee.pk})
        self.edit_url = reverse("accounts:profile-edit", kwargs={"user_id": self.trainee.pk})
        self.valid_data = {"name": "Jane Doe", "birthday": "1990-05-17", "gender": "female"}

    def flashed(self, response) -> list[str]:
        return [str(message) for message in get_messages(response.wsgi_request)]

    def test_login_required(self):
        response = self.client.get(self.detail_url)

        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("login"), response["Location"])

    def test_owner_sees_profile_with_edit_link(self):
        self.client.force_login(self.trainee)

        response = self.client.get(self.detail_url)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, self.edit_url)

    def test_supervisor_sees_profile_without_edit_link(self):
        self.client.force_login(factories.create_user(role="supervisor"))

        response = self.client.get(self.detail_url)

        self.assertEqual(response.status_code, 200)
        self.assertNotContains(response, self.edit_url)

    def test_other_trainee_and_missing_user_look_the_same(self):
        self.client.force_login(factories.create_user())
        missing_url = reverse("accounts:profile-detail", kwargs={"user_id": 999999})

        existing = self.client.get(self.detail_url)
        self.assertRedirects(existing, reverse("home"))
        missing = self.client.get(missing_url)
        self.assertRedirects(missing, reverse("home"))

        self.assertEqual(self.flashed(existing), self.flashed(missing))
        self.assertEqual(self.flashed(missing), ["The requested page is not available to you."])

    def test_owner_updates_profile(self):
        self.client.force_login(self.trainee)

        response = self.client.post(self.edit_url, self.valid_data)

        self.assertRedirects(response, self.detail_url)
        self.trainee.refresh_from_db()
        self.assertEqual(self.trainee.name, "Jane Doe")
        self.assertEqual(self.trainee.birthday, date(1990, 5, 17))
        self.assertEqual(self.trainee.gender, get_user_model().Gender.FEMALE)

    def test_invalid_profile_is_rendered_again(self):
        self.client.force_login(self.trainee)
        data = {**self.valid_data, "birthday": "1800-01-01"}

        response = self.client.post(self.edit_url, data)

        self.assertEqual(response.status_code, 422)
        self.assertIn("birthday", response.context["form"].errors)
        self.trainee.refresh_from_db()
        self.assertEqual(self.trainee.name, "")

    def test_all_fields_are_required(self):
        self.client.force_login(self.trainee)

        response = self.client.post(self.edit_url, {"name": "Jane"})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(set(response.context["form"].errors), {"birthday", "gender"})

    def test_supervisor_cannot_edit_someone_else(self):
        self.client.force_login(factories.create_user(role="supervisor"))

        response = self.client.post(self.edit_url, self.valid_data)

        self.assertRedirects(response, reverse("home"))
        self.trainee.refresh_from_db()
        self.assertEqual(self.trainee.name, "")

    def test_admin_edits_anyone(self):
        self.client.force_login(factories.create_user(role="admin"))

        response = self.client.post(self.edit_url, self.valid_data)

        self.assertRedirects(response, self.detail_url)
        self.trainee.refresh_from_db()
        self.assertEqual(self.trainee.name, "Jane Doe")
