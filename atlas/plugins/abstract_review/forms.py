from django import forms
from django.utils.translation import gettext_lazy as _

from .models import Abstract, Review


class IdentityListField(forms.Field):
    """A list of identifiers, sent as repeated form values.

    Values are not validated here: the workflow reports the invalid ones individually.
    """

    widget = forms.MultipleHiddenInput

    def to_python(self, value):
        if not value:
            return []
        if isinstance(value, str):
            value = [value]
        return [item.strip() if isinstance(item, str) else item for item in value if item not in ("", None)]

    def validate(self, value):
        if self.required and not value:
            raise forms.ValidationError(self.error_messages["required"], code="required")


class AssignReviewersForm(forms.Form):
    reviewers = IdentityListField(label=_("Reviewers"))


class BulkAssignReviewersForm(forms.Form):
    abstracts = IdentityListField(label=_("Abstracts"))
    reviewers = IdentityListField(label=_("Reviewers"))


class SubmitReviewForm(forms.Form):
    decision = forms.ChoiceField(choices=Review.Decisions.choices)
    score = forms.FloatField(required=False)
    comments = forms.CharField(required=False, widget=forms.Textarea)
    reviewer = forms.IntegerField(
        required=False,
        min_value=1,
        help_text=_("Administrators only: the reviewer on whose behalf the review is submitted."),
    )


class AdminDecisionForm(forms.Form):
    decision = forms.ChoiceField(
        choices=[
            choice for choice in Abstract.FinalDecisions.choices if choice[0] != Abstract.FinalDecisions.PENDING
        ],
    )
    reason = forms.CharField(required=False, widget=forms.Textarea)
    revision_deadline = forms.DateTimeField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        if (
            cleaned_data.get("revision_deadline")
            and cleaned_data.get("decision") != Abstract.FinalDecisions.REVISION_REQUESTED
        ):
            self.add_error("revision_deadline", _("A deadline can be set only when requesting a revision."))
        return cleaned_data
