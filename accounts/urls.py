from django.urls import path

from . import views

app_name = "accounts"

urlpatterns = [
    path("<int:user_id>/", views.profile_detail, name="profile-detail"),
    path("<int:user_id>/edit/", views.profile_update, name="profile-edit"),
]
