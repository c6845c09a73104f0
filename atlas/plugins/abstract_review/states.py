"""Status derivation.

The status of an abstract is computed from the latest reviewer decision, unless an administrator took a final
decision. There is no quorum and no consensus: the last decision wins.

Everything in this module is free of side effects and can be used without touching the database.
"""

from typing import Iterable, Optional

from .models import Abstract, Review

REVIEW_DECISION_TARGETS = {
    Review.Decisions.ACCEPT.value: Abstract.Status.APPROVED,
    Review.Decisions.REJECT.value: Abstract.Status.REJECTED,
    Review.Decisions.REVISE.value: Abstract.Status.REVISION_REQUESTED,
}

# An administrator's approval or rejection cannot be overturned by reviewers.
ADMIN_LOCKING_DECISIONS = (
    Abstract.FinalDecisions.APPROVED,
    Abstract.FinalDecisions.REJECTED,
)

EDITABLE_STATES = (
    Abstract.Status.DRAFT,
    Abstract.Status.SUBMITTED,
    Abstract.Status.REVISION_REQUESTED,
)


def is_locked_by_admin(final_decision: Optional[str]) -> bool:
    return final_decision in ADMIN_LOCKING_DECISIONS


def derive_status(current_status: str, decision: str, locked_by_admin: bool = False) -> str:
    """
    Compute the status that follows a reviewer decision.

    :param current_status: the status of the abstract before the decision
    :param decision: the decision of the review being submitted
    :param locked_by_admin: whether an administrator took a final decision on the abstract
    :return: the new status
    """
    if locked_by_admin:
        return current_status
    return REVIEW_DECISION_TARGETS.get(decision, current_status)


def compute_average_score(reviews: Iterable[Review]) -> Optional[float]:
    """
    Average the scores of the complete reviews.

    Reviews without a score, and incomplete reviews, are ignored. Returns None if no review qualifies.
    """
    scores = [review.score for review in reviews if review.is_complete and review.score is not None]
    if not scores:
        return None
    return sum(scores) / len(scores)


def compute_completion_percentage(completed: int, total: int) -> float:
    """Percentage of completed reviews, with one decimal; 0 when there is nothing assigned."""
    if not total:
        return 0
    return round(completed / total * 100, 1)
