from django.contrib import admin

from .models import DailyReport


@admin.register(DailyReport)
class DailyReportAdmin(admin.ModelAdmin):
    list_display = ("user", "course", "report_date")
    list_filter = ("course", "report_date")
    search_fields = ("user__username", "course__name", "content")
    autocomplete_fields = ("user", "course")
