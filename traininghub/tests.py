from django.contrib.auth.models import AnonymousUser
from django.contrib.messages.storage.fallback import FallbackStorage
from django.contrib.sessions.middleware import SessionMiddleware
from django.http import HttpResponse
from django.test import RequestFactory, TestCase, override_settings
from django.urls import reverse

from trainees.tests import factories

from .conf import DEFAULTS, training_setting
from .errors import (
    GENERIC_DENIAL,
    AuthorizationDenied,
    NotFound,
    ProgressInitializationFailed,
    ValidationFailed,
    api_exception_handler,
)
from .middleware import DomainErrorMiddleware, flash_text


def _request(path: str = "/courses/1/"):
    request = RequestFactory().get(path)
    SessionMiddleware(lambda r: HttpResponse()).process_request(request)
    request._messages = FallbackStorage(request)
    request.user = AnonymousUser()
    return request


class DomainErrorMiddlewareTests(TestCase):
    def setUp(self):
        self.middleware = DomainErrorMiddleware(lambda request: HttpResponse())

    def test_redirects_to_fallback_with_message(self):
        request = _request()

        response = self.middleware.process_exception(
            request, ValidationFailed("Score must be a number.", fallback_url="/courses/1/")
        )

        self.assertEqual(response.status_code, 302)
        self.assertEqual(response["Location"], "/courses/1/")
        self.assertEqual([str(m) for m in request._messages], ["Score must be a number."])

    def test_external_fallback_is_replaced_with_root(self):
        request = _request()

        response = self.middleware.process_exception(
            request, NotFound(fallback_url="https://evil.example.com/")
        )

        self.assertEqual(response["Location"], "/")

    def test_denial_and_missing_share_one_message(self):
        self.assertEqual(
            flash_text(AuthorizationDenied("update", "Course")),
            flash_text(NotFound("Course not found.")),
        )

    def test_denial_is_logged(self):
        request = _request()

        with self.assertLogs("traininghub.middleware", level="WARNING"):
            self.middleware.process_exception(request, AuthorizationDenied("update", "Course"))

    def test_api_requests_are_left_to_rest_framework(self):
        request = _request("/api/courses/1/subjects/1/")

        self.assertIsNone(self.middleware.process_exception(request, NotFound()))

    def test_other_exceptions_propagate(self):
        self.assertIsNone(self.middleware.process_exception(_request(), RuntimeError("db down")))


class ApiExceptionHandlerTests(TestCase):
    def context(self):
        request = RequestFactory().post("/api/subject-progresses/1/complete/")
        request.user = factories.create_user()
        return {"request": request}

    def test_denial_renders_like_missing_record(self):
        denied = api_exception_handler(
            AuthorizationDenied("update_score", "CourseSubject"), self.context()
        )
        missing = api_exception_handler(NotFound("Subject progress not found."), self.context())

        self.assertEqual(denied.status_code, 404)
        self.assertEqual(denied.status_code, missing.status_code)
        self.assertEqual(denied.data, missing.data)
        self.assertEqual(denied.data["detail"], str(GENERIC_DENIAL))

    def test_denial_is_logged(self):
        with self.assertLogs("traininghub.errors", level="WARNING"):
            api_exception_handler(
                AuthorizationDenied("update_score", "CourseSubject"), self.context()
            )

    def test_other_errors_keep_their_status_and_detail(self):
        response = api_exception_handler(
            ValidationFailed("Score must be a number."), self.context()
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(str(response.data["detail"]), "Score must be a number.")

    def test_unknown_exceptions_are_not_handled(self):
        self.assertIsNone(api_exception_handler(RuntimeError("db down"), self.context()))


class ErrorTaxonomyTests(TestCase):
    def test_status_codes_and_message_kinds(self):
        self.assertEqual(AuthorizationDenied("read", "Course").status_code, 403)
        self.assertEqual(NotFound().status_code, 404)
        self.assertEqual(ValidationFailed().status_code, 400)
        error = ProgressInitializationFailed(fallback_url="/courses/1/")
        self.assertEqual(error.status_code, 409)
        self.assertEqual(error.message_kind, "cannot_proceed")
        self.assertEqual(error.fallback_url, "/courses/1/")


class TrainingSettingTests(TestCase):
    def test_falls_back_to_defaults(self):
        with override_settings(TRAINING={}):
            self.assertEqual(training_setting("MAX_DOCUMENT_SIZE"), DEFAULTS["MAX_DOCUMENT_SIZE"])

    def test_reads_overrides(self):
        with override_settings(TRAINING={"MIN_SPENT_TIME": 10}):
            self.assertEqual(training_setting("MIN_SPENT_TIME"), 10)


class HomeViewTests(TestCase):
    def test_anonymous_is_sent_to_login(self):
        response = self.client.get(reverse("home"))

        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("login"), response["Location"])

    def test_supervisor_sees_supervised_courses(self):
        supervisor = factories.create_user(role="supervisor")
        course = factories.create_course("Kubernetes", supervisor=supervisor)
        self.client.force_login(supervisor)

        response = self.client.get(reverse("home"))

        self.assertContains(response, course.name)
