import dataclasses
from typing import Any, Dict, List, Literal, Optional, TypedDict, Union

from django.contrib.auth import get_user_model

from atlas.event_profile.models import AuthorAccount, Registrant

from .models import Abstract, Review

Account = get_user_model()

AssignmentOutcome = Literal["full", "partial", "failure"]


@dataclasses.dataclass(frozen=True)
class AdminCaller:
    """An administrator (staff account) of the review process."""

    user: Account


@dataclasses.dataclass(frozen=True)
class ReviewerCaller:
    user: Account


@dataclasses.dataclass(frozen=True)
class SubmitterCaller:
    """The owner of an abstract, either a registrant or an author account."""

    submitter: Union[Registrant, AuthorAccount]


Caller = Union[AdminCaller, ReviewerCaller, SubmitterCaller]


class InvalidReviewer(TypedDict):
    identity: Any
    "Reviewer identity as it was requested."
    reason: str
    "Why the identity was rejected."


class ReviewProgress(TypedDict):
    total_assigned: int
    completed_reviews: int
    pending_reviews: int
    completion_percentage: float


class ReviewerStatistics(TypedDict):
    reviewer: int
    name: str
    email: str
    review_count: int
    completed_reviews: int
    average_score: Optional[float]


class ReviewStatistics(TypedDict):
    """Review figures of an event."""

    total_abstracts: int
    by_status: Dict[str, int]
    by_submission_type: Dict[str, int]
    by_category: Dict[str, int]
    total_reviews: int
    completed_reviews: int
    average_score: Optional[float]
    reviewers: List[ReviewerStatistics]


@dataclasses.dataclass
class AssignmentResult:
    """Outcome of an assignment of reviewers to one abstract."""

    abstract: Abstract
    assigned_reviewers: List[Account] = dataclasses.field(default_factory=list)
    already_assigned: List[int] = dataclasses.field(default_factory=list)
    invalid_reviewers: List[InvalidReviewer] = dataclasses.field(default_factory=list)

    @property
    def new_assignments(self) -> List[int]:
        return [reviewer.pk for reviewer in self.assigned_reviewers]

    @property
    def success(self) -> bool:
        """The assignment fails only when every requested identity was invalid."""
        return bool(self.assigned_reviewers or self.already_assigned or not self.invalid_reviewers)

    @property
    def outcome(self) -> AssignmentOutcome:
        if not self.success:
            return "failure"
        if self.invalid_reviewers:
            return "partial"
        return "full"

    def as_dict(self) -> dict:
        return {
            "abstract": self.abstract.pk,
            "status": self.abstract.status,
            "outcome": self.outcome,
            "new_assignments": self.new_assignments,
            "already_assigned": self.already_assigned,
            "invalid_reviewers": self.invalid_reviewers,
        }


@dataclasses.dataclass
class ReviewSubmission:
    """Outcome of a review submission, handed over to the notification phase."""

    abstract: Abstract
    review: Review
    previous_status: str
    created: bool
    approved_by_reviewer: bool = False

    def as_dict(self) -> dict:
        return {
            "abstract": self.abstract.pk,
            "status": self.abstract.status,
            "average_score": self.abstract.average_score,
            "review": {
                "id": self.review.pk,
                "reviewer": self.review.reviewer_id,
                "score": self.review.score,
                "decision": self.review.decision,
                "comments": self.review.comments,
                "is_complete": self.review.is_complete,
                "date_reviewed": self.review.date_reviewed.isoformat() if self.review.date_reviewed else None,
            },
            "created": self.created,
        }


@dataclasses.dataclass
class SubmitterContact:
    first_name: str
    email: str
