from django.urls import path

from .views import (
    EnrollmentCreateView,
    SubjectCompleteView,
    SubjectProgressView,
    SubjectTaskDestroyView,
    TaskDocumentDetailView,
    TaskDocumentView,
    TaskSpentTimeView,
    TaskStatusView,
)

urlpatterns = [
    path(
        "api/courses/<int:course_id>/subjects/<int:subject_id>/",
        SubjectProgressView.as_view(),
        name="api-subject-progress",
    ),
    path(
        "api/courses/<int:course_id>/enrollments/",
        EnrollmentCreateView.as_view(),
        name="api-enrollment-create",
    ),
    path(
        "api/subjects/<int:subject_id>/tasks/destroy/",
        SubjectTaskDestroyView.as_view(),
        name="api-subject-task-destroy",
    ),
    path(
        "api/subject-progresses/<int:subject_progress_id>/complete/",
        SubjectCompleteView.as_view(),
        name="api-subject-complete",
    ),
    path(
        "api/subject-progresses/<int:subject_progress_id>/tasks/<int:task_id>/document/",
        TaskDocumentView.as_view(),
        name="api-task-document",
    ),
    path(
        "api/subject-progresses/<int:subject_progress_id>/tasks/<int:task_id>/documents/<int:document_id>/",
        TaskDocumentDetailView.as_view(),
        name="api-task-document-detail",
    ),
    path(
        "api/subject-progresses/<int:subject_progress_id>/tasks/<int:task_id>/status/",
        TaskStatusView.as_view(),
        name="api-task-status",
    ),
    path(
        "api/subject-progresses/<int:subject_progress_id>/tasks/<int:task_id>/spent-time/",
        TaskSpentTimeView.as_view(),
        name="api-task-spent-time",
    ),
]
