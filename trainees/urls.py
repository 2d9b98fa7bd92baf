from django.urls import path

from . import views

app_name = "trainees"

urlpatterns = [
    path(
        "courses/<int:course_id>/subjects/<int:subject_id>/",
        views.subject_detail,
        name="subject-detail",
    ),
    path(
        "courses/<int:course_id>/tasks/<int:task_id>/document/",
        views.update_document,
        name="task-document-update",
    ),
    path(
        "courses/<int:course_id>/tasks/<int:task_id>/status/",
        views.update_status,
        name="task-status-update",
    ),
    path(
        "courses/<int:course_id>/tasks/<int:task_id>/spent-time/",
        views.update_spent_time,
        name="task-spent-time-update",
    ),
    path(
        "courses/<int:course_id>/tasks/<int:task_id>/documents/<int:document_id>/delete/",
        views.destroy_document,
        name="task-document-destroy",
    ),
]
