"""JSON endpoints of the review workflow."""

from django.contrib.auth import get_user_model
from django.http import JsonResponse
from django.views import View

from atlas.event_profile.models import Event

from . import logic
from .custom_types import AdminCaller
from .exceptions import AbstractNotFound, ReviewValidationError
from .filters import AbstractFilter
from .forms import (
    AdminDecisionForm,
    AssignReviewersForm,
    BulkAssignReviewersForm,
    SubmitReviewForm,
)
from .mixins import AbstractReviewJSONMixin, AdminRequiredMixin
from .models import Abstract

Account = get_user_model()


def serialize_abstract(abstract: Abstract) -> dict:
    return {
        "id": abstract.pk,
        "title": abstract.title,
        "status": abstract.status,
        "average_score": abstract.average_score,
        "final_decision": abstract.final_decision,
        "decision_reason": abstract.decision_reason,
        "revision_deadline": abstract.revision_deadline.isoformat() if abstract.revision_deadline else None,
    }


class AssignReviewers(AbstractReviewJSONMixin, AdminRequiredMixin, View):
    def post(self, request, pk):
        form = AssignReviewersForm(request.POST)
        if not form.is_valid():
            return self.form_error_response(form)
        result = logic.run_with_retries(
            logic.AssignReviewers(
                abstract_id=pk,
                reviewer_identities=form.cleaned_data["reviewers"],
                caller=self.get_caller(),
            ),
        )
        return JsonResponse(result.as_dict(), status=200 if result.success else 400)


class BulkAssignReviewers(AbstractReviewJSONMixin, AdminRequiredMixin, View):
    def post(self, request):
        form = BulkAssignReviewersForm(request.POST)
        if not form.is_valid():
            return self.form_error_response(form)
        results = logic.AssignReviewersToAbstracts(
            abstract_ids=form.cleaned_data["abstracts"],
            reviewer_identities=form.cleaned_data["reviewers"],
            caller=self.get_caller(),
        ).run()
        return JsonResponse({"results": [result.as_dict() for result in results.values()]})


class SubmitReview(AbstractReviewJSONMixin, View):
    def _get_reviewer(self, form, caller):
        reviewer_id = form.cleaned_data.get("reviewer")
        if not reviewer_id or reviewer_id == self.request.user.pk:
            return self.request.user
        if not isinstance(caller, AdminCaller):
            raise AbstractNotFound("Not found")
        try:
            return Account.objects.get(pk=reviewer_id, is_active=True)
        except Account.DoesNotExist:
            raise ReviewValidationError(f"Reviewer {reviewer_id} not found")

    def post(self, request, pk):
        form = SubmitReviewForm(request.POST)
        if not form.is_valid():
            return self.form_error_response(form)
        caller = self.get_caller()
        submission = logic.run_with_retries(
            logic.SubmitReview(
                abstract_id=pk,
                reviewer=self._get_reviewer(form, caller),
                decision=form.cleaned_data["decision"],
                score=form.cleaned_data["score"],
                comments=form.cleaned_data["comments"],
                caller=caller,
            ),
        )
        return JsonResponse(submission.as_dict(), status=201 if submission.created else 200)


class ResubmitRevision(AbstractReviewJSONMixin, View):
    def post(self, request, pk):
        caller = self.get_submitter_caller(pk)
        if caller is None:
            raise AbstractNotFound("Not found")
        abstract = logic.ResubmitRevision(abstract_id=pk, caller=caller).run()
        return JsonResponse(serialize_abstract(abstract))


class AdminDecision(AbstractReviewJSONMixin, AdminRequiredMixin, View):
    def post(self, request, pk):
        form = AdminDecisionForm(request.POST)
        if not form.is_valid():
            return self.form_error_response(form)
        abstract = logic.AdminDecision(
            abstract_id=pk,
            decision=form.cleaned_data["decision"],
            reason=form.cleaned_data["reason"],
            revision_deadline=form.cleaned_data["revision_deadline"],
            caller=self.get_caller(),
        ).run()
        return JsonResponse(serialize_abstract(abstract))


class AutoAssignReviewers(AbstractReviewJSONMixin, AdminRequiredMixin, View):
    def post(self, request, pk):
        event = Event.objects.filter(pk=pk).first()
        if not event:
            raise AbstractNotFound(f"Event {pk} not found")
        updated = logic.AutoAssignReviewers(event=event, caller=self.get_caller()).run()
        return JsonResponse({"event": event.code, "updated": updated})


class ReviewProgress(AbstractReviewJSONMixin, View):
    def get(self, request, pk):
        progress = logic.GetReviewProgress(abstract_id=pk, caller=self.get_caller()).run()
        return JsonResponse(dict(progress))


class ReviewProgressList(AbstractReviewJSONMixin, AdminRequiredMixin, View):
    """Review progress of the abstracts of an event."""

    def get(self, request, pk):
        event = Event.objects.filter(pk=pk).first()
        if not event:
            raise AbstractNotFound(f"Event {pk} not found")
        queryset = Abstract.objects.filter(event=event).with_review_progress().order_by("pk")
        filterset = AbstractFilter(request.GET, queryset=queryset, event=event)
        if not filterset.is_valid():
            return self.form_error_response(filterset.form)
        abstracts = [
            {
                **serialize_abstract(abstract),
                "total_assigned": abstract.total_assigned,
                "completed_reviews": abstract.completed_reviews,
                "pending_reviews": abstract.pending_reviews,
                "completion_percentage": abstract.completion_percentage,
            }
            for abstract in filterset.qs
        ]
        return JsonResponse({"event": event.code, "abstracts": abstracts})


class ReviewStatistics(AbstractReviewJSONMixin, AdminRequiredMixin, View):
    """Abstract counts and reviewer performance of an event."""

    def get(self, request, pk):
        event = Event.objects.filter(pk=pk).first()
        if not event:
            raise AbstractNotFound(f"Event {pk} not found")
        statistics = logic.GetReviewStatistics(event=event, caller=self.get_caller()).run()
        return JsonResponse({"event": event.code, **statistics})
