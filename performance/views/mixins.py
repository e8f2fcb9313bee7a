# performance/views/mixins.py
import json
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import HttpResponse, JsonResponse
from django.utils.functional import cached_property
from django.views import View

from performance.access import actor_for_user
from performance.exceptions import AppraisalError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)


class LoginRequired(LoginRequiredMixin):
    """JSON endpoints answer 403 instead of redirecting to a login page."""
    raise_exception = True


class ActorMixin:
    """Roles → capabilities are resolved once per request."""

    @cached_property
    def actor(self):
        return actor_for_user(self.request.user)


class JsonErrorMixin:
    """Turn AppraisalError into {"error": {code, message, details}}."""

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except AppraisalError as exc:
            if exc.status_code >= 500:
                logger.exception("Appraisal request failed: %s %s", request.method, request.path)
            else:
                logger.info("%s %s → %s (%s)", request.method, request.path, exc.status_code, exc.code)
            return JsonResponse({"error": exc.to_dict()}, status=exc.status_code)


class ObjectPermissionRequiredMixin:
    """
    Object-level check with django-guardian.
    - `object_permission_map` like {"GET": ["performance.view_appraisalassignment"], ...}
      or `required_perms` for every method.
    - actors holding `bypass_capability` skip the per-object check.
    """
    required_perms = None
    object_permission_map = None
    bypass_capability = "can_view_all_appraisals"

    def check_object_permissions(self, obj) -> None:
        if self.bypass_capability and self.actor.can(self.bypass_capability):
            return
        perms = None
        if self.object_permission_map:
            perms = self.object_permission_map.get(self.request.method)
        if perms is None:
            perms = self.required_perms or []
        user = self.request.user
        for p in perms:
            if not user.has_perm(p, obj):
                raise PermissionDeniedError("You do not have access to this record.", details={"permission": p})


class ApiView(LoginRequired, JsonErrorMixin, ActorMixin, View):
    """Base for every JSON endpoint of the appraisal app."""
    http_method_names = ["get", "post", "patch", "delete"]

    def body(self) -> dict:
        if not self.request.body:
            return {}
        try:
            data = json.loads(self.request.body)
        except ValueError:
            raise ValidationError("Request body is not valid JSON.")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object.")
        return data

    def form_payload(self, form_class, *, partial: bool = False) -> dict:
        return form_class(self.body(), partial=partial).payload()

    def query_int(self, name: str):
        value = self.request.GET.get(name)
        if value in (None, ""):
            return None
        try:
            return int(value)
        except ValueError:
            raise ValidationError(f"Query parameter '{name}' must be an integer.", details={"field": name})

    def ok(self, data, status: int = 200) -> JsonResponse:
        return JsonResponse(data, status=status, safe=False)

    def no_content(self) -> HttpResponse:
        return HttpResponse(status=204)
