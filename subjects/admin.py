from django.contrib import admin

from .models import Category, Subject, Task


class TaskInline(admin.TabularInline):
    model = Task
    fk_name = "subject"
    extra = 0
    fields = ("name", "deleted_at")
    readonly_fields = ("deleted_at",)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


@admin.register(Subject)
class SubjectAdmin(admin.ModelAdmin):
    list_display = ("name", "max_score", "estimated_time_days", "deleted_at")
    list_filter = ("categories",)
    search_fields = ("name",)
    filter_horizontal = ("categories",)
    inlines = (TaskInline,)

    def get_queryset(self, request):
        return Subject.all_objects.all()


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("name", "taskable_type", "subject", "course_subject", "deleted_at")
    list_filter = ("taskable_type",)
    search_fields = ("name", "subject__name", "course_subject__subject__name")
    autocomplete_fields = ("subject",)
    raw_id_fields = ("course_subject",)
