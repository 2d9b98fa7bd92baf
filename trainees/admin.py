from django.contrib import admin

from .models import SubjectProgress, TaskDocument, TaskProgress


class TaskProgressInline(admin.TabularInline):
    model = TaskProgress
    extra = 0
    fields = ("task", "status", "spent_time")
    readonly_fields = ("task",)


@admin.register(SubjectProgress)
class SubjectProgressAdmin(admin.ModelAdmin):
    list_display = ("user", "course_subject", "status", "score", "started_at", "completed_at")
    list_filter = ("status",)
    search_fields = ("user__username", "course_subject__subject__name")
    raw_id_fields = ("enrollment", "course_subject", "user")
    inlines = (TaskProgressInline,)


@admin.register(TaskDocument)
class TaskDocumentAdmin(admin.ModelAdmin):
    list_display = ("filename", "task_progress", "content_type", "size", "uploaded_at")
    search_fields = ("filename", "task_progress__user__username")
    raw_id_fields = ("task_progress",)
    readonly_fields = ("uploaded_at",)
