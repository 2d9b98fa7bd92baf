from datetime import date

from django.core.exceptions import ValidationError
from django.test import TestCase

from courses.models import Course, CourseEnrollment
from courses.services import build_course_outline, build_subject_progress_map, enroll_trainee
from subjects.models import Task
from trainees.models import SubjectProgress
from trainees.tests import factories
from traininghub.errors import AuthorizationDenied, ValidationFailed


class CourseModelTests(TestCase):
    def test_finish_date_cannot_precede_start(self):
        course = Course(name="Rails", start_date=date(2024, 5, 1), finish_date=date(2024, 4, 1))
        with self.assertRaises(ValidationError) as ctx:
            course.full_clean()
        self.assertIn("finish_date", ctx.exception.message_dict)

    def test_course_subjects_follow_position(self):
        course = factories.create_course()
        second = factories.add_subject(course, position=2)
        first = factories.add_subject(course, position=1)

        self.assertEqual(list(course.course_subjects.all()), [first, second])


class EnrollTraineeTests(TestCase):
    def setUp(self):
        self.supervisor = factories.create_user(role="supervisor")
        self.course = factories.create_course(supervisor=self.supervisor)
        self.trainee = factories.create_user()

    def test_enrollment_is_idempotent(self):
        with self.assertLogs("courses.services", level="INFO"):
            first, created = enroll_trainee(self.supervisor, self.course, self.trainee)
        self.assertTrue(created)

        second, created = enroll_trainee(self.supervisor, self.course, self.trainee)

        self.assertFalse(created)
        self.assertEqual(first, second)
        self.assertEqual(CourseEnrollment.objects.count(), 1)

    def test_admin_can_enroll(self):
        admin = factories.create_user(role="admin")
        _, created = enroll_trainee(admin, self.course, self.trainee)
        self.assertTrue(created)

    def test_unassigned_supervisor_is_denied(self):
        stranger = factories.create_user(role="supervisor")
        with self.assertRaises(AuthorizationDenied):
            enroll_trainee(stranger, self.course, self.trainee)
        self.assertFalse(CourseEnrollment.objects.exists())

    def test_trainee_cannot_enroll_others(self):
        other = factories.create_user()
        with self.assertRaises(AuthorizationDenied):
            enroll_trainee(other, self.course, self.trainee)

    def test_only_trainees_are_enrolled(self):
        with self.assertRaises(ValidationFailed):
            enroll_trainee(self.supervisor, self.course, self.supervisor)


class CourseOutlineTests(TestCase):
    def test_outline_counts_visible_tasks_and_attaches_progress(self):
        setup = factories.build_training_setup(task_count=3)
        setup["tasks"][0].delete()
        progress = factories.create_subject_progress(setup["trainee"], setup["course_subject"])
        hidden = factories.add_subject(setup["course"], position=2)
        hidden.subject.delete()

        rows = build_course_outline(user=setup["trainee"], course=setup["course"])

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].task_count, 2)
        self.assertEqual(rows[0].progress, progress)
        self.assertEqual(rows[0].status, SubjectProgress.Status.NOT_STARTED)

    def test_progress_map_is_empty_without_progress(self):
        setup = factories.build_training_setup()
        Task.objects.create(subject=setup["subject"], name="Catalog only")

        progress_map = build_subject_progress_map(
            user=setup["trainee"], course_subjects=[setup["course_subject"]]
        )

        self.assertEqual(progress_map, {})
