from django.urls import path

from .views import course_detail

app_name = "courses"

urlpatterns = [
    path("courses/<int:course_id>/", course_detail, name="course-detail"),
]
