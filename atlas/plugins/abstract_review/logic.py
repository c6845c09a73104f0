"""Business logic is here.

Most logic is encapsulated into dataclasses that take the necessary data structures upon creation and perform their
action in a method named "run()".

Every operation has two phases: the workflow changes are made in a single transaction, then notifications are
dispatched using the committed outcome. Notification failures never affect the outcome of the operation.
"""

import dataclasses
import datetime
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.db.models import Avg, F
from django.utils import timezone
from django_fsm import can_proceed, has_transition_perm

from atlas.event_profile.models import Category, Event, ReviewerProfile
from atlas.event_profile.utils import (
    ReviewerAccountError,
    get_category,
    get_reviewer_account,
    parse_identity,
)
from atlas.utils.logger import get_logger

from . import communication_utils, permissions
from .custom_types import (
    AdminCaller,
    AssignmentResult,
    Caller,
    InvalidReviewer,
    ReviewerCaller,
    ReviewerStatistics,
    ReviewProgress,
    ReviewStatistics,
    ReviewSubmission,
    SubmitterCaller,
)
from .events.assignment import dispatch_auto_assignment
from .exceptions import (
    AbstractNotFound,
    InvalidStateTransition,
    NotAuthorized,
    ReviewValidationError,
    RevisionDeadlineExpired,
    TransientReviewError,
)
from .models import Abstract, AbstractDecision, Review, ReviewerAssignment
from .plugin_settings import get_setting
from .states import compute_average_score, compute_completion_percentage

Account = get_user_model()
logger = get_logger(__name__)


def get_locked_abstract(abstract_id: Any) -> Abstract:
    """
    Fetch the abstract, locking its row until the end of the current transaction.

    Concurrent operations on the same abstract are serialized here: the second one waits and then reads the state
    committed by the first one.
    """
    pk = parse_identity(abstract_id)
    if pk is None:
        raise AbstractNotFound(f"Abstract {abstract_id!r} not found")
    try:
        return Abstract.objects.select_for_update().get(pk=pk)
    except Abstract.DoesNotExist:
        raise AbstractNotFound(f"Abstract {abstract_id!r} not found")


def check_admin_caller(caller: Caller):
    if not isinstance(caller, AdminCaller) or not permissions.is_admin(caller.user):
        raise NotAuthorized("Only administrators can perform this operation")


def run_with_retries(service: Any, attempts: Optional[int] = None) -> Any:
    """
    Run the service, resubmitting it when its transaction is aborted.

    Only operations that can be safely replayed (assignments and review submissions) should be run this way.
    """
    # the service runs at least once, whatever the configuration says
    attempts = max(1, attempts or get_setting("TRANSACTION_RETRIES") or 1)
    for attempt in range(1, attempts + 1):
        try:
            return service.run()
        except TransientReviewError:
            if attempt >= attempts:
                raise
            logger.warning(f"{service.__class__.__name__} aborted, retrying ({attempt}/{attempts})")


@dataclasses.dataclass
class AssignReviewers:
    """Assign a list of reviewers to an abstract.

    Reviewers already assigned are reported and left untouched; identities that cannot be resolved to a contactable
    account are reported with the reason. Valid ones are assigned and their workload is increased. The result is
    returned even if only some identities were valid.
    """

    abstract_id: Any
    reviewer_identities: Sequence[Any]
    caller: Caller
    auto_assigned: bool = False
    only_if_unassigned: bool = False

    def check_conditions(self):
        check_admin_caller(self.caller)
        if not self.reviewer_identities:
            raise ReviewValidationError("At least one reviewer is required")

    def _unique_identities(self) -> List[Any]:
        """Drop repeated identities, keeping the first occurrence."""
        seen = set()
        identities = []
        for identity in self.reviewer_identities:
            key = parse_identity(identity)
            if key is None:
                key = repr(identity)
            if key in seen:
                continue
            seen.add(key)
            identities.append(identity)
        return identities

    @staticmethod
    def _increment_workload(reviewer: Account):
        profile, __ = ReviewerProfile.objects.get_or_create(reviewer=reviewer)
        ReviewerProfile.objects.filter(pk=profile.pk).update(
            assigned_abstracts_count=F("assigned_abstracts_count") + 1,
        )

    def _assign_reviewer(self, abstract: Abstract, reviewer: Account) -> ReviewerAssignment:
        assignment = ReviewerAssignment.objects.create(
            abstract=abstract,
            reviewer=reviewer,
            auto_assigned=self.auto_assigned,
        )
        self._increment_workload(reviewer)
        return assignment

    def _update_state(self, abstract: Abstract):
        if can_proceed(abstract.reviewers_assigned):
            abstract.reviewers_assigned()
            abstract.save()

    def assign(self) -> AssignmentResult:
        """Change the assignments. Must be called inside a transaction."""
        abstract = get_locked_abstract(self.abstract_id)
        result = AssignmentResult(abstract=abstract)
        assigned = set(abstract.assignments.values_list("reviewer_id", flat=True))
        if self.only_if_unassigned and assigned:
            logger.info(f"Abstract {abstract.pk} got reviewers in the meantime: skipped")
            return result
        for identity in self._unique_identities():
            reviewer_id = parse_identity(identity)
            if reviewer_id is not None and reviewer_id in assigned:
                result.already_assigned.append(reviewer_id)
                continue
            try:
                reviewer = get_reviewer_account(identity)
            except ReviewerAccountError as e:
                result.invalid_reviewers.append(InvalidReviewer(identity=identity, reason=e.reason))
                continue
            self._assign_reviewer(abstract, reviewer)
            assigned.add(reviewer.pk)
            result.assigned_reviewers.append(reviewer)
        if result.assigned_reviewers:
            self._update_state(abstract)
        return result

    def _log_operation(self, result: AssignmentResult):
        logger.info(
            f"Reviewers assigned to abstract {result.abstract.pk}: new={result.new_assignments} "
            f"already={result.already_assigned} invalid={len(result.invalid_reviewers)}",
        )

    def notify(self, result: AssignmentResult):
        communication_utils.notify_reviewers_assigned(result)

    def run(self) -> AssignmentResult:
        self.check_conditions()
        try:
            with transaction.atomic():
                result = self.assign()
        except DatabaseError as e:
            raise TransientReviewError(f"Assignment to abstract {self.abstract_id} aborted") from e
        self._log_operation(result)
        self.notify(result)
        return result


@dataclasses.dataclass
class AssignReviewersToAbstracts:
    """Assign the same reviewers to several abstracts, all or nothing."""

    abstract_ids: Sequence[Any]
    reviewer_identities: Sequence[Any]
    caller: Caller

    def _get_services(self) -> List[AssignReviewers]:
        abstract_ids = []
        for abstract_id in self.abstract_ids:
            pk = parse_identity(abstract_id)
            if pk is None:
                raise AbstractNotFound(f"Abstract {abstract_id!r} not found")
            if pk not in abstract_ids:
                abstract_ids.append(pk)
        # Locks are always taken in the same order.
        return [
            AssignReviewers(abstract_id=pk, reviewer_identities=self.reviewer_identities, caller=self.caller)
            for pk in sorted(abstract_ids)
        ]

    def run(self) -> Dict[int, AssignmentResult]:
        if not self.abstract_ids:
            raise ReviewValidationError("At least one abstract is required")
        services = self._get_services()
        for service in services:
            service.check_conditions()
        try:
            with transaction.atomic():
                results = [service.assign() for service in services]
        except DatabaseError as e:
            raise TransientReviewError("Bulk assignment aborted") from e
        for service, result in zip(services, results):
            service._log_operation(result)
            service.notify(result)
        return {result.abstract.pk: result for result in results}


@dataclasses.dataclass
class SubmitReview:
    """Record the review of a reviewer and update the abstract accordingly.

    A second submission by the same reviewer replaces the first one. The status follows the decision of the latest
    review, unless an administrator approved or rejected the abstract.
    """

    abstract_id: Any
    reviewer: Account
    decision: str
    caller: Caller
    score: Any = None
    comments: str = ""

    def _clean_score(self) -> Optional[float]:
        if self.score is None or self.score == "":
            if get_setting("REQUIRE_REVIEW_SCORE"):
                raise ReviewValidationError("A score is required")
            return None
        if isinstance(self.score, bool):
            raise ReviewValidationError("The score must be a number")
        try:
            score = float(self.score)
        except (TypeError, ValueError):
            raise ReviewValidationError("The score must be a number")
        if not math.isfinite(score):
            raise ReviewValidationError("The score must be a number")
        return score

    def check_conditions(self) -> Optional[float]:
        """Validate the input and return the cleaned score."""
        if self.decision not in Review.Decisions.values:
            raise ReviewValidationError(f"Invalid decision {self.decision!r}")
        return self._clean_score()

    def _check_caller(self, abstract: Abstract):
        if isinstance(self.caller, AdminCaller) and permissions.is_admin(self.caller.user):
            return
        if (
            isinstance(self.caller, ReviewerCaller)
            and self.caller.user.pk == self.reviewer.pk
            and permissions.is_abstract_reviewer(abstract, self.caller.user)
        ):
            return
        raise NotAuthorized(f"{self.caller} cannot review abstract {abstract.pk}")

    def _ensure_assignment(self, abstract: Abstract):
        """Administrators can submit a review on behalf of a reviewer who is not assigned yet."""
        ReviewerAssignment.objects.get_or_create(abstract=abstract, reviewer=self.reviewer)

    def _save_review(self, abstract: Abstract, score: Optional[float]) -> Tuple[Review, bool]:
        return Review.objects.update_or_create(
            abstract=abstract,
            reviewer=self.reviewer,
            defaults={
                "score": score,
                "comments": self.comments or "",
                "decision": self.decision,
                "is_complete": True,
                "date_reviewed": timezone.now(),
            },
        )

    def submit(self, score: Optional[float]) -> ReviewSubmission:
        """Record the review. Must be called inside a transaction."""
        abstract = get_locked_abstract(self.abstract_id)
        self._check_caller(abstract)
        self._ensure_assignment(abstract)
        review, created = self._save_review(abstract, score)
        abstract.average_score = compute_average_score(abstract.reviews.all())
        previous_status = abstract.status
        abstract.review_submitted(self.decision)
        abstract.save()
        return ReviewSubmission(
            abstract=abstract,
            review=review,
            previous_status=previous_status,
            created=created,
            approved_by_reviewer=(
                self.decision == Review.Decisions.ACCEPT
                and abstract.status == Abstract.Status.APPROVED
                and not abstract.is_locked_by_admin
            ),
        )

    def _log_operation(self, submission: ReviewSubmission):
        logger.info(
            f"Review by {self.reviewer.pk} on abstract {submission.abstract.pk}: {self.decision} "
            f"({submission.previous_status} -> {submission.abstract.status})",
        )

    def notify(self, submission: ReviewSubmission):
        if submission.approved_by_reviewer:
            communication_utils.notify_review_approval(submission)

    def run(self) -> ReviewSubmission:
        score = self.check_conditions()
        try:
            with transaction.atomic():
                submission = self.submit(score)
        except DatabaseError as e:
            raise TransientReviewError(f"Review of abstract {self.abstract_id} aborted") from e
        self._log_operation(submission)
        self.notify(submission)
        return submission


@dataclasses.dataclass
class AutoAssignReviewers:
    """Assign the category reviewers to every abstract of the event that has none.

    Each abstract is assigned in its own transaction; abstracts whose category cannot be resolved are skipped.
    Running the sweep twice has no further effect.
    """

    event: Event
    caller: Caller

    def _get_abstracts(self):
        return Abstract.objects.filter(event=self.event).lacking_reviewers().with_category().order_by("pk")

    def _assign(self, abstract: Abstract) -> Optional[AssignmentResult]:
        try:
            category = get_category(self.event.pk, abstract.category_id)
        except Category.DoesNotExist:
            logger.warning(f"Category {abstract.category_id} of abstract {abstract.pk} not found: skipped")
            return None
        reviewer_identities = dispatch_auto_assignment(abstract, category)
        if not reviewer_identities:
            logger.info(f"No reviewers in category {category.pk}: abstract {abstract.pk} skipped")
            return None
        return run_with_retries(
            AssignReviewers(
                abstract_id=abstract.pk,
                reviewer_identities=reviewer_identities,
                caller=self.caller,
                auto_assigned=True,
                only_if_unassigned=True,
            ),
        )

    def run(self) -> int:
        check_admin_caller(self.caller)
        updated = 0
        for abstract in self._get_abstracts():
            try:
                result = self._assign(abstract)
            except TransientReviewError:
                # left without reviewers: the next sweep picks it up again
                logger.exception(f"Automatic assignment of abstract {abstract.pk} aborted: skipped")
                continue
            if result and result.assigned_reviewers:
                updated += 1
        logger.info(f"Automatic assignment for {self.event.code}: {updated} abstracts updated")
        return updated


@dataclasses.dataclass
class ResubmitRevision:
    """The submitter sends the revised abstract back to its reviewers."""

    abstract_id: Any
    caller: Caller

    def check_conditions(self, abstract: Abstract):
        if not isinstance(self.caller, SubmitterCaller) or not permissions.is_abstract_submitter(
            abstract,
            self.caller.submitter,
        ):
            raise NotAuthorized(f"{self.caller} cannot resubmit abstract {abstract.pk}")
        if not can_proceed(abstract.author_resubmits_revision):
            raise InvalidStateTransition(f"Abstract {abstract.pk} is {abstract.status}: no revision requested")
        if abstract.revision_deadline and timezone.now() > abstract.revision_deadline:
            raise RevisionDeadlineExpired(f"Revision deadline of abstract {abstract.pk} has passed")

    def resubmit(self) -> Abstract:
        abstract = get_locked_abstract(self.abstract_id)
        self.check_conditions(abstract)
        abstract.author_resubmits_revision()
        # A new round of reviews: reviewers decide again.
        abstract.final_decision = Abstract.FinalDecisions.PENDING
        abstract.save()
        return abstract

    def run(self) -> Abstract:
        try:
            with transaction.atomic():
                abstract = self.resubmit()
        except DatabaseError as e:
            raise TransientReviewError(f"Resubmission of abstract {self.abstract_id} aborted") from e
        logger.info(f"Abstract {abstract.pk} resubmitted after revision")
        communication_utils.notify_revision_resubmitted(abstract)
        return abstract


@dataclasses.dataclass
class AdminDecision:
    """An administrator approves, rejects or requests a revision of an abstract, overriding reviewers."""

    abstract_id: Any
    decision: str
    caller: Caller
    reason: str = ""
    revision_deadline: Optional[datetime.datetime] = None

    TRANSITIONS = {
        Abstract.FinalDecisions.APPROVED.value: "admin_approves",
        Abstract.FinalDecisions.REJECTED.value: "admin_rejects",
        Abstract.FinalDecisions.REVISION_REQUESTED.value: "admin_requests_revision",
    }

    def check_conditions(self):
        check_admin_caller(self.caller)
        if self.decision not in self.TRANSITIONS:
            raise ReviewValidationError(f"Invalid decision {self.decision!r}")
        if self.revision_deadline:
            if self.decision != Abstract.FinalDecisions.REVISION_REQUESTED:
                raise ReviewValidationError("A revision deadline can be set only when requesting a revision")
            if self.revision_deadline <= timezone.now():
                raise ReviewValidationError("The revision deadline must be in the future")

    def decide(self) -> Abstract:
        abstract = get_locked_abstract(self.abstract_id)
        transition_method = getattr(abstract, self.TRANSITIONS[self.decision])
        if not has_transition_perm(transition_method, self.caller.user):
            raise NotAuthorized(f"{self.caller} cannot decide on abstract {abstract.pk}")
        transition_method()
        abstract.final_decision = self.decision
        abstract.decision_by = self.caller.user
        abstract.decision_date = timezone.now()
        abstract.decision_reason = self.reason or ""
        abstract.revision_deadline = self.revision_deadline
        abstract.save()
        AbstractDecision.objects.create(
            abstract=abstract,
            decision=self.decision,
            reason=abstract.decision_reason,
            decided_by=self.caller.user,
            revision_deadline=self.revision_deadline,
        )
        return abstract

    def run(self) -> Abstract:
        self.check_conditions()
        try:
            with transaction.atomic():
                abstract = self.decide()
        except DatabaseError as e:
            raise TransientReviewError(f"Decision on abstract {self.abstract_id} aborted") from e
        logger.info(f"Administrator {self.caller.user.pk} decided {self.decision} on abstract {abstract.pk}")
        communication_utils.notify_admin_decision(abstract)
        return abstract


def get_review_progress(abstract: Abstract) -> ReviewProgress:
    """Summarize how many of the assigned reviewers completed their review."""
    assigned = list(abstract.assignments.values_list("reviewer_id", flat=True))
    total = len(assigned)
    completed = abstract.reviews.filter(is_complete=True, reviewer_id__in=assigned).count()
    return ReviewProgress(
        total_assigned=total,
        completed_reviews=completed,
        pending_reviews=total - completed,
        completion_percentage=compute_completion_percentage(completed, total),
    )


@dataclasses.dataclass
class GetReviewProgress:
    abstract_id: Any
    caller: Caller

    def run(self) -> ReviewProgress:
        pk = parse_identity(self.abstract_id)
        abstract = Abstract.objects.filter(pk=pk).first() if pk else None
        if not abstract:
            raise AbstractNotFound(f"Abstract {self.abstract_id!r} not found")
        user = getattr(self.caller, "user", None)
        if not user or not permissions.can_see_review_progress(abstract, user):
            raise NotAuthorized(f"{self.caller} cannot see abstract {abstract.pk}")
        return get_review_progress(abstract)


def _round_score(score: Optional[float]) -> Optional[float]:
    return round(score, 1) if score is not None else None


def get_review_statistics(event: Event) -> ReviewStatistics:
    """
    Summarize the abstracts and the reviews of an event.

    Abstracts are counted by status, submission type and category (abstracts without a category are not counted
    there). Scores are averaged over complete reviews only and rounded to one decimal.
    """
    abstracts = Abstract.objects.filter(event=event)
    reviews = Review.objects.filter(abstract__event=event)
    completed = reviews.complete()
    reviewers = [
        ReviewerStatistics(
            reviewer=row["reviewer"],
            name=f"{row['reviewer__first_name']} {row['reviewer__last_name']}".strip() or row["reviewer__email"],
            email=row["reviewer__email"],
            review_count=row["review_count"],
            completed_reviews=row["completed_reviews"],
            average_score=_round_score(row["average_score"]),
        )
        for row in reviews.reviewer_statistics()
    ]
    return ReviewStatistics(
        total_abstracts=abstracts.count(),
        by_status=abstracts.count_by("status"),
        by_submission_type=abstracts.count_by("submission_type"),
        by_category=abstracts.count_by("category__name"),
        total_reviews=reviews.count(),
        completed_reviews=completed.count(),
        average_score=_round_score(completed.aggregate(average=Avg("score"))["average"]),
        reviewers=reviewers,
    )


@dataclasses.dataclass
class GetReviewStatistics:
    event: Event
    caller: Caller

    def run(self) -> ReviewStatistics:
        check_admin_caller(self.caller)
        return get_review_statistics(self.event)
