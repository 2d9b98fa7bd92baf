"""
URL configuration for the traininghub project.

HTML pages live at the root, the JSON API under ``/api/``.
"""
import os
from django.contrib import admin
from django.urls import include, path
from django.conf import settings
from django.conf.urls.static import static

from .views import HomeView

urlpatterns = [
    path('', HomeView.as_view(), name='home'),
    path('admin/', admin.site.urls),
    path('accounts/', include('django.contrib.auth.urls')),
    path('users/', include(('accounts.urls', 'accounts'), namespace='accounts')),
    path('', include(('courses.urls', 'courses'), namespace='courses')),
    path('', include(('trainees.urls', 'trainees'), namespace='trainees')),
    path('', include('trainees.api.urls')),
]

# Serve uploaded media locally during development when S3 is not configured
if settings.DEBUG and not os.environ.get("AWS_STORAGE_BUCKET_NAME"):
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
