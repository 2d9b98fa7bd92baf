from django.contrib.auth.mixins import LoginRequiredMixin
from django.views.generic import TemplateView


class HomeView(LoginRequiredMixin, TemplateView):
    """List the courses the user is enrolled in or supervises."""
    template_name = "home.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        user = self.request.user
        context["enrollments"] = (
            user.course_enrollments.select_related("course").order_by("course__name")
        )
        context["supervised_courses"] = user.supervised_courses.order_by("name")
        return context
