from typing import Optional, Union

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _
from django_fsm import GET_STATE, FSMField, transition
from model_utils.models import TimeStampedModel

from atlas.event_profile.models import AuthorAccount, Category, Event, Registrant

from . import permissions
from .managers import AbstractQuerySet, ReviewQuerySet

Account = get_user_model()


def process_review_decision(abstract: "Abstract", decision: str, **kwargs) -> "Abstract.Status":
    """Compute the status that follows a reviewer decision."""
    from .states import derive_status

    return derive_status(abstract.status, decision, abstract.is_locked_by_admin)


class Abstract(TimeStampedModel):
    class Status(models.TextChoices):
        DRAFT = "draft", _("Draft")
        SUBMITTED = "submitted", _("Submitted")
        UNDER_REVIEW = "under-review", _("Under review")
        REVISION_REQUESTED = "revision-requested", _("Revision requested")
        REVISED_PENDING_REVIEW = "revised-pending-review", _("Revised, pending review")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")

    class FinalDecisions(models.TextChoices):
        """Decisions taken by administrators, overriding reviewers."""

        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")
        REVISION_REQUESTED = "revision-requested", _("Revision requested")

    class SubmissionTypes(models.TextChoices):
        ORAL = "oral", _("Oral")
        POSTER = "poster", _("Poster")
        WORKSHOP = "workshop", _("Workshop")
        OTHER = "other", _("Other")

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="abstracts")
    registration = models.ForeignKey(
        Registrant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="abstracts",
        help_text=_("Submitter, when the abstract was submitted after registering to the event."),
    )
    author = models.ForeignKey(
        AuthorAccount,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="abstracts",
        help_text=_("Submitter, when the abstract was submitted through an author account."),
    )

    title = models.CharField(max_length=500)
    authors = models.TextField(blank=True, help_text=_("Authors as they should appear in the programme."))
    content = models.TextField(blank=True)
    word_count = models.PositiveIntegerField(default=0, editable=False)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="abstracts",
    )
    topic = models.CharField(max_length=255, blank=True)
    sub_topic = models.CharField(max_length=255, blank=True)
    submission_type = models.CharField(
        max_length=20,
        choices=SubmissionTypes.choices,
        default=SubmissionTypes.ORAL,
    )

    status = FSMField(default=Status.DRAFT, choices=Status.choices, verbose_name=_("Status"))
    latest_state_change = models.DateTimeField(null=True, blank=True)

    reviewers = models.ManyToManyField(
        Account,
        through="ReviewerAssignment",
        related_name="abstracts_to_review",
        blank=True,
    )
    average_score = models.FloatField(null=True, blank=True)

    final_decision = models.CharField(
        max_length=30,
        choices=FinalDecisions.choices,
        default=FinalDecisions.PENDING,
    )
    decision_by = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    decision_date = models.DateTimeField(null=True, blank=True)
    decision_reason = models.TextField(blank=True)
    revision_deadline = models.DateTimeField(null=True, blank=True)

    objects = AbstractQuerySet.as_manager()

    class Meta:
        ordering = ["-created"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(registration__isnull=False, author__isnull=True)
                    | models.Q(registration__isnull=True, author__isnull=False)
                ),
                name="abstract_has_exactly_one_submitter",
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    def clean(self):
        if bool(self.registration_id) == bool(self.author_id):
            raise ValidationError(_("An abstract belongs either to a registration or to an author account."))

    def save(self, *args, **kwargs):
        self.word_count = len(self.content.split()) if self.content else 0
        super().save(*args, **kwargs)

    @property
    def submitter(self) -> Optional[Union[Registrant, AuthorAccount]]:
        return self.registration or self.author

    @property
    def is_locked_by_admin(self) -> bool:
        from .states import is_locked_by_admin

        return is_locked_by_admin(self.final_decision)

    @property
    def is_editable(self) -> bool:
        from .states import EDITABLE_STATES

        return self.status in EDITABLE_STATES

    # reviewers are assigned (manually or by the category sweep)
    @transition(
        field=status,
        source=[Status.DRAFT, Status.SUBMITTED, Status.REVISED_PENDING_REVIEW],
        target=Status.UNDER_REVIEW,
    )
    def reviewers_assigned(self):
        pass

    # a reviewer submits (or re-submits) a review
    @transition(
        field=status,
        source="*",
        target=GET_STATE(process_review_decision, states=Status.values),
    )
    def review_submitted(self, decision: str):
        pass

    @transition(
        field=status,
        source=Status.REVISION_REQUESTED,
        target=Status.REVISED_PENDING_REVIEW,
    )
    def author_resubmits_revision(self):
        pass

    @transition(
        field=status,
        source="*",
        target=Status.APPROVED,
        permission=permissions.has_admin_role_by_abstract,
    )
    def admin_approves(self):
        pass

    @transition(
        field=status,
        source="*",
        target=Status.REJECTED,
        permission=permissions.has_admin_role_by_abstract,
    )
    def admin_rejects(self):
        pass

    @transition(
        field=status,
        source="*",
        target=Status.REVISION_REQUESTED,
        permission=permissions.has_admin_role_by_abstract,
    )
    def admin_requests_revision(self):
        pass


class ReviewerAssignment(TimeStampedModel):
    """A reviewer assigned to an abstract."""

    abstract = models.ForeignKey(Abstract, on_delete=models.CASCADE, related_name="assignments")
    reviewer = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="abstract_assignments")
    auto_assigned = models.BooleanField(
        default=False,
        help_text=_("True when the assignment was made by the category sweep."),
    )

    class Meta:
        ordering = ["created", "id"]
        constraints = [
            models.UniqueConstraint(fields=["abstract", "reviewer"], name="unique_reviewer_per_abstract"),
        ]

    def __str__(self):
        return f"{self.reviewer} on {self.abstract_id}"


class Review(TimeStampedModel):
    """The review of an abstract by one reviewer.

    There is at most one review per reviewer: a new submission by the same reviewer updates it in place, keeping its
    position (`created`) among the reviews of the abstract.
    """

    class Decisions(models.TextChoices):
        ACCEPT = "accept", _("Accept")
        REJECT = "reject", _("Reject")
        REVISE = "revise", _("Revise")
        UNDECIDED = "undecided", _("Undecided")

    abstract = models.ForeignKey(Abstract, on_delete=models.CASCADE, related_name="reviews")
    reviewer = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="abstract_reviews")
    score = models.FloatField(null=True, blank=True)
    comments = models.TextField(blank=True)
    decision = models.CharField(max_length=20, choices=Decisions.choices, default=Decisions.UNDECIDED)
    is_complete = models.BooleanField(default=False)
    date_reviewed = models.DateTimeField(null=True, blank=True)

    objects = ReviewQuerySet.as_manager()

    class Meta:
        ordering = ["created", "id"]
        constraints = [
            models.UniqueConstraint(fields=["abstract", "reviewer"], name="unique_review_per_reviewer"),
        ]

    def __str__(self):
        return f"{self.reviewer} on {self.abstract_id}: {self.decision}"


class AbstractDecision(TimeStampedModel):
    """History of the administrators' decisions on an abstract."""

    abstract = models.ForeignKey(Abstract, on_delete=models.CASCADE, related_name="decisions")
    decision = models.CharField(max_length=30, choices=Abstract.FinalDecisions.choices)
    reason = models.TextField(blank=True)
    decided_by = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, related_name="+")
    revision_deadline = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created", "id"]

    def __str__(self):
        return f"{self.abstract_id}: {self.decision}"
