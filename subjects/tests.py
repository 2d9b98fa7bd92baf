from django.core.exceptions import ValidationError
from django.test import TestCase

from subjects.models import Subject, Task
from subjects.sanitize import sanitize_description_html
from subjects.services import destroy_tasks
from subjects.templatetags.subject_markdown import subject_markdown
from trainees.tests import factories
from traininghub.errors import AuthorizationDenied


class SoftDeleteTests(TestCase):
    def setUp(self):
        self.subject = factories.create_subject("Ruby basics")
        self.first = Task.objects.create(subject=self.subject, name="Install")
        self.second = Task.objects.create(subject=self.subject, name="Hello world")

    def test_delete_hides_subject_and_its_tasks(self):
        self.subject.delete()

        self.assertFalse(Subject.objects.filter(pk=self.subject.pk).exists())
        self.assertTrue(Subject.all_objects.filter(pk=self.subject.pk).exists())
        self.assertEqual(Task.objects.filter(subject=self.subject).count(), 0)
        self.assertEqual(Task.all_objects.deleted().filter(subject=self.subject).count(), 2)

    def test_restore_brings_back_tasks_deleted_with_subject(self):
        self.first.delete()
        self.subject.delete()

        self.subject.restore()

        self.assertTrue(Subject.objects.filter(pk=self.subject.pk).exists())
        self.assertEqual(list(Task.objects.filter(subject=self.subject)), [self.second])

    def test_queryset_delete_is_soft(self):
        Task.objects.filter(subject=self.subject).delete()

        self.assertEqual(Task.all_objects.filter(subject=self.subject).count(), 2)
        self.assertEqual(Task.objects.filter(subject=self.subject).count(), 0)

    def test_hard_delete_removes_rows(self):
        self.subject.hard_delete()

        self.assertFalse(Subject.all_objects.filter(pk=self.subject.pk).exists())
        self.assertFalse(Task.all_objects.filter(subject_id=self.subject.pk).exists())

    def test_name_can_be_reused_after_delete(self):
        self.subject.delete()

        factories.create_subject("ruby BASICS")

        self.assertEqual(Subject.all_objects.filter(name__iexact="ruby basics").count(), 2)


class SubjectValidationTests(TestCase):
    def test_max_score_limit_follows_configuration(self):
        subject = Subject(name="Go", max_score=150, estimated_time_days=3)
        with self.assertRaises(ValidationError) as ctx:
            subject.full_clean()
        self.assertIn("max_score", ctx.exception.message_dict)

        with self.settings(TRAINING={"SUBJECT_MAX_SCORE_LIMIT": 200}):
            subject.full_clean()

    def test_estimated_time_must_be_positive(self):
        subject = Subject(name="Go", max_score=10, estimated_time_days=0)
        with self.assertRaises(ValidationError) as ctx:
            subject.full_clean()
        self.assertIn("estimated_time_days", ctx.exception.message_dict)

    def test_name_is_unique_ignoring_case(self):
        factories.create_subject("Python")
        with self.assertRaises(ValidationError):
            Subject(name="PYTHON", max_score=10, estimated_time_days=1).full_clean()


class SubjectQuerySetTests(TestCase):
    def setUp(self):
        self.beta = factories.create_subject("Beta testing")
        self.alpha = factories.create_subject("Alpha release")

    def test_ordered_by_name(self):
        self.assertEqual(list(Subject.objects.ordered_by_name()), [self.alpha, self.beta])

    def test_recent_lists_newest_first(self):
        self.assertEqual(list(Subject.objects.recent()), [self.alpha, self.beta])

    def test_search_by_name(self):
        self.assertEqual(list(Subject.objects.search_by_name(" alpha ")), [self.alpha])
        self.assertEqual(Subject.objects.search_by_name("").count(), 2)
        self.assertEqual(Subject.objects.search_by_name(None).count(), 2)


class TaskTaggingTests(TestCase):
    def test_taskable_type_is_inferred(self):
        subject = factories.create_subject()
        course_subject = factories.add_subject(factories.create_course())

        subject_task = Task.objects.create(subject=subject, name="A")
        course_task = Task.objects.create(course_subject=course_subject, name="A")

        self.assertEqual(subject_task.taskable_type, Task.Taskable.SUBJECT)
        self.assertEqual(subject_task.taskable, subject)
        self.assertEqual(course_task.taskable_type, Task.Taskable.COURSE_SUBJECT)
        self.assertEqual(course_task.taskable, course_subject)

    def test_task_with_both_owners_is_invalid(self):
        course_subject = factories.add_subject(factories.create_course())
        task = Task(
            name="Both",
            taskable_type=Task.Taskable.SUBJECT,
            subject=course_subject.subject,
            course_subject=course_subject,
        )
        with self.assertRaises(ValidationError):
            task.full_clean()

    def test_task_names_are_unique_per_owner(self):
        subject = factories.create_subject()
        Task.objects.create(subject=subject, name="Same")
        with self.assertRaises(ValidationError):
            Task(subject=subject, name="Same", taskable_type=Task.Taskable.SUBJECT).full_clean()


class DestroyTasksTests(TestCase):
    def setUp(self):
        self.setup = factories.build_training_setup(task_count=0)
        self.subject = self.setup["subject"]
        self.supervisor = self.setup["supervisor"]

    def test_only_tasks_of_the_subject_are_deleted(self):
        other = factories.create_subject()
        keep = Task.objects.create(subject=self.subject, name="Keep")
        drop = Task.objects.create(subject=self.subject, name="Drop")
        foreign = Task.objects.create(subject=other, name="Foreign")

        deleted = destroy_tasks(self.supervisor, self.subject, [drop.pk, foreign.pk, "junk"])

        self.assertEqual(deleted, 1)
        self.assertEqual(list(Task.objects.filter(subject=self.subject)), [keep])
        self.assertTrue(Task.objects.filter(pk=foreign.pk).exists())

    def test_empty_list_is_a_no_op(self):
        self.assertEqual(destroy_tasks(self.supervisor, self.subject, []), 0)

    def test_admin_may_destroy_tasks_of_any_subject(self):
        subject = factories.create_subject()
        task = Task.objects.create(subject=subject, name="Old")

        deleted = destroy_tasks(factories.create_user(role="admin"), subject, [task.pk])

        self.assertEqual(deleted, 1)

    def test_supervisor_of_another_course_is_denied(self):
        task = Task.objects.create(subject=self.subject, name="Keep")

        with self.assertRaises(AuthorizationDenied):
            destroy_tasks(factories.create_user(role="supervisor"), self.subject, [task.pk])

        self.assertTrue(Task.objects.filter(pk=task.pk).exists())

    def test_trainee_is_denied(self):
        task = Task.objects.create(subject=self.subject, name="Keep")

        with self.assertRaises(AuthorizationDenied):
            destroy_tasks(self.setup["trainee"], self.subject, [task.pk])

        self.assertTrue(Task.objects.filter(pk=task.pk).exists())


class SubjectMarkdownFilterTests(TestCase):
    def test_renders_markdown(self):
        html = subject_markdown("Use **bold** text")
        self.assertIn("<strong>bold</strong>", html)

    def test_strips_scripts(self):
        html = subject_markdown("Hi <script>alert(1)</script>")
        self.assertNotIn("<script>", html)

    def test_empty_value(self):
        self.assertEqual(subject_markdown(None), "")

    def test_links_open_in_new_tab_without_follow(self):
        html = subject_markdown("See [the guide](https://example.com/guide)")

        self.assertIn('href="https://example.com/guide"', html)
        self.assertIn('rel="nofollow"', html)
        self.assertIn('target="_blank"', html)

    def test_definition_lists_and_tables_survive(self):
        html = subject_markdown("Term\n:   Meaning\n\n| a | b |\n|---|---|\n| 1 | 2 |\n")

        self.assertIn("<dt>Term</dt>", html)
        self.assertIn("<table>", html)


class SanitizeDescriptionTests(TestCase):
    def test_top_level_heading_and_images_are_stripped(self):
        html = sanitize_description_html('<h1>Title</h1><img src="x.png"><p>Body</p>')

        self.assertNotIn("<h1>", html)
        self.assertNotIn("<img", html)
        self.assertIn("Title", html)
        self.assertIn("<p>Body</p>", html)

    def test_data_and_javascript_links_are_dropped(self):
        html = sanitize_description_html(
            '<a href="javascript:alert(1)">x</a><a href="data:text/html,hi">y</a>'
        )

        self.assertNotIn("javascript:", html)
        self.assertNotIn("data:", html)

    def test_event_handlers_are_removed(self):
        html = sanitize_description_html('<p onclick="steal()">Hi</p>')

        self.assertEqual(html, "<p>Hi</p>")
