import logging

from django.contrib import messages
from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect, render
from django.utils.translation import gettext_lazy as _

from traininghub.errors import AuthorizationDenied, NotFound

from .abilities import authorize
from .forms import ProfileForm

logger = logging.getLogger(__name__)


def _load_profile(user_id):
    profile = get_user_model().objects.filter(pk=user_id).first()
    if profile is None:
        raise NotFound("User not found.")
    return profile


def can_edit_profile(user, profile) -> bool:
    """Only the owner and admins edit a profile."""
    return user.pk == profile.pk or getattr(user, "is_admin", False)


@login_required
def profile_detail(request, user_id: int):
    profile = _load_profile(user_id)
    if profile.pk != request.user.pk:
        authorize(request.user, "show", profile)
    return render(
        request,
        "accounts/profile_detail.html",
        {"profile": profile, "can_edit": can_edit_profile(request.user, profile)},
    )


@login_required
def profile_update(request, user_id: int):
    profile = _load_profile(user_id)
    if not can_edit_profile(request.user, profile):
        raise AuthorizationDenied("update", "User")

    if request.method == "POST":
        form = ProfileForm(request.POST, instance=profile)
        if form.is_valid():
            form.save()
            logger.info("User %s updated profile of user %s", request.user.pk, profile.pk)
            messages.success(request, _("Profile updated."))
            return redirect("accounts:profile-detail", user_id=profile.pk)
        messages.error(request, _("The profile could not be updated."))
        return render(
            request,
            "accounts/profile_form.html",
            {"profile": profile, "form": form},
            status=422,
        )

    form = ProfileForm(instance=profile)
    return render(request, "accounts/profile_form.html", {"profile": profile, "form": form})
