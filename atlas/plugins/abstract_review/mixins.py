from typing import Any, Optional

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse

from atlas.utils.logger import get_logger

from . import permissions
from .custom_types import AdminCaller, Caller, ReviewerCaller, SubmitterCaller
from .exceptions import AbstractNotFound, ReviewValidationError, TransientReviewError
from .models import Abstract

logger = get_logger(__name__)


class AbstractReviewJSONMixin(LoginRequiredMixin):
    """Base for the workflow endpoints: authentication, caller detection and error reporting."""

    raise_exception = True

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except AbstractNotFound as e:
            return self.error_response(str(e), status=404)
        except ReviewValidationError as e:
            return self.error_response(str(e), status=400)
        except TransientReviewError as e:
            logger.warning(f"Transient error on {request.path}: {e}")
            return self.error_response(str(e), status=503)

    @staticmethod
    def error_response(message: Any, status: int) -> JsonResponse:
        return JsonResponse({"error": message}, status=status)

    def form_error_response(self, form) -> JsonResponse:
        return self.error_response(form.errors.get_json_data(), status=400)

    def get_caller(self) -> Caller:
        """Staff act as administrators, everybody else as a reviewer."""
        user = self.request.user
        if permissions.is_admin(user):
            return AdminCaller(user=user)
        return ReviewerCaller(user=user)

    def get_submitter_caller(self, abstract_id: Any) -> Optional[SubmitterCaller]:
        """Return the submitter identity of the current user that owns the abstract, if any."""
        user = self.request.user
        submitters = [
            submitter
            for submitter in (getattr(user, "registrant", None), getattr(user, "author_account", None))
            if submitter is not None
        ]
        for submitter in submitters:
            if Abstract.objects.filter(pk=abstract_id).submitted_by(submitter).exists():
                return SubmitterCaller(submitter=submitter)
        if submitters:
            return SubmitterCaller(submitter=submitters[0])
        return None


class AdminRequiredMixin:
    """Hide the endpoint to non-administrators."""

    def dispatch(self, request, *args, **kwargs):
        if not permissions.is_admin(request.user):
            raise AbstractNotFound("Not found")
        return super().dispatch(request, *args, **kwargs)
