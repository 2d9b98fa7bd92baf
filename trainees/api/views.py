from django.contrib.auth import get_user_model
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.abilities import authorize
from courses.models import CourseEnrollment
from courses.services import enroll_trainee
from subjects.models import Subject
from subjects.services import destroy_tasks
from traininghub.errors import GENERIC_DENIAL, NotFound, ValidationFailed

from .. import task_updates
from ..models import SubjectProgress
from ..services import complete_subject, get_course_or_404, open_subject
from .serializers import (
    EnrollmentRequestSerializer,
    EnrollmentSerializer,
    ScoreRequestSerializer,
    SpentTimeRequestSerializer,
    StatusRequestSerializer,
    SubjectPageSerializer,
    SubjectProgressSerializer,
    TaskDestroyRequestSerializer,
    TaskProgressSerializer,
)


def _result_response(result) -> Response:
    payload = {"success": result.success, "message_kind": result.message_kind}
    if result.message_kind == task_updates.CANNOT_DO_THIS_TASK:
        payload["detail"] = str(GENERIC_DENIAL)
        return Response(payload, status=status.HTTP_404_NOT_FOUND)

    if result.task_progress is not None:
        result.task_progress.refresh_from_db()
        payload["task_progress"] = TaskProgressSerializer(result.task_progress).data
    if result.success:
        return Response(payload)

    payload["detail"] = str(result.error.detail) if result.error else ""
    if isinstance(result.error, ValidationFailed):
        return Response(payload, status=status.HTTP_400_BAD_REQUEST)
    # Message-only failures, such as an unknown document on detach.
    return Response(payload)


class SubjectProgressView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, course_id: int, subject_id: int):
        page = open_subject(request.user, course_id, subject_id)
        return Response(SubjectPageSerializer(page).data)


class TaskDocumentView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, subject_progress_id: int, task_id: int):
        result = task_updates.attach_document(
            request.user, task_id, subject_progress_id, request.FILES.get("document")
        )
        return _result_response(result)


class TaskDocumentDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request, subject_progress_id: int, task_id: int, document_id: int):
        result = task_updates.detach_document(
            request.user, task_id, subject_progress_id, document_id
        )
        return _result_response(result)


class TaskStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, subject_progress_id: int, task_id: int):
        serializer = StatusRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = task_updates.set_status(
            request.user, task_id, subject_progress_id, serializer.validated_data["status"]
        )
        return _result_response(result)


class TaskSpentTimeView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, subject_progress_id: int, task_id: int):
        serializer = SpentTimeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = task_updates.set_spent_time(
            request.user,
            task_id,
            subject_progress_id,
            serializer.validated_data["spent_time"],
        )
        return _result_response(result)


class EnrollmentCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, course_id: int):
        course = get_course_or_404(course_id)
        authorize(request.user, "create", CourseEnrollment(course=course))
        serializer = EnrollmentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        trainee = get_user_model().objects.filter(pk=serializer.validated_data["user_id"]).first()
        if trainee is None:
            raise NotFound("User not found.")

        enrollment, created = enroll_trainee(request.user, course, trainee)
        return Response(
            EnrollmentSerializer(enrollment).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class SubjectCompleteView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, subject_progress_id: int):
        subject_progress = (
            SubjectProgress.objects.select_related("course_subject__course", "course_subject__subject")
            .filter(pk=subject_progress_id)
            .first()
        )
        if subject_progress is None:
            raise NotFound("Subject progress not found.")
        authorize(request.user, "update_score", subject_progress.course_subject)

        serializer = ScoreRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subject_progress = complete_subject(
            request.user, subject_progress, serializer.validated_data["score"]
        )
        return Response(SubjectProgressSerializer(subject_progress).data)


class SubjectTaskDestroyView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, subject_id: int):
        subject = Subject.objects.filter(pk=subject_id).first()
        if subject is None:
            raise NotFound("Subject not found.")
        authorize(request.user, "destroy_tasks", subject)
        serializer = TaskDestroyRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        deleted = destroy_tasks(request.user, subject, serializer.validated_data["task_ids"])
        return Response({"deleted": deleted})
