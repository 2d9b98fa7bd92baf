from django import forms
from django.contrib.auth import get_user_model
from django.utils.translation import gettext_lazy as _

User = get_user_model()


class ProfileForm(forms.ModelForm):
    """Profile fields a user maintains for themselves."""

    class Meta:
        model = User
        fields = ("name", "birthday", "gender")
        labels = {
            "name": _("Name"),
            "birthday": _("Birthday"),
            "gender": _("Gender"),
        }
        widgets = {
            "birthday": forms.DateInput(attrs={"type": "date"}),
        }
        error_messages = {
            "name": {"required": _("Enter your name")},
            "birthday": {"required": _("Enter your birthday")},
            "gender": {"required": _("Choose a gender")},
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.required = True
