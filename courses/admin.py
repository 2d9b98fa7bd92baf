from django.contrib import admin

from .models import Course, CourseEnrollment, CourseSubject, CourseSupervisor


class CourseSubjectInline(admin.TabularInline):
    model = CourseSubject
    extra = 0
    autocomplete_fields = ("subject",)
    fields = ("position", "subject", "start_date", "finish_date")
    ordering = ("position",)


class CourseSupervisorInline(admin.TabularInline):
    model = CourseSupervisor
    extra = 0
    autocomplete_fields = ("user",)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("name", "status", "start_date", "finish_date", "created_by")
    list_filter = ("status",)
    search_fields = ("name", "description")
    readonly_fields = ("created_at", "updated_at")
    inlines = (CourseSupervisorInline, CourseSubjectInline)


@admin.register(CourseEnrollment)
class CourseEnrollmentAdmin(admin.ModelAdmin):
    list_display = ("user", "course", "status", "created_at")
    list_filter = ("status", "course")
    search_fields = ("user__username", "course__name")
    autocomplete_fields = ("user", "course")
    readonly_fields = ("created_at", "updated_at")


@admin.register(CourseSubject)
class CourseSubjectAdmin(admin.ModelAdmin):
    list_display = ("course", "subject", "position", "start_date", "finish_date")
    list_filter = ("course",)
    search_fields = ("course__name", "subject__name")
    autocomplete_fields = ("course", "subject")
