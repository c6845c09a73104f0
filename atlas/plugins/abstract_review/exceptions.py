"""Errors raised by the review workflow.

Views map them to HTTP responses:

- :py:class:`AbstractNotFound` (and :py:class:`NotAuthorized`): 404
- :py:class:`ReviewValidationError`: 400
- :py:class:`TransientReviewError`: 503
"""


class AbstractReviewError(Exception):
    """Base class of the review workflow errors."""


class AbstractNotFound(AbstractReviewError):
    """The abstract does not exist."""


class NotAuthorized(AbstractNotFound):
    """The caller cannot act on the abstract.

    Reported as not-found: callers must not learn whether an abstract they have no relation with exists.
    """


class ReviewValidationError(AbstractReviewError):
    """Input or preconditions are not valid."""


class InvalidStateTransition(ReviewValidationError):
    """The abstract is not in a status where the operation is allowed."""


class RevisionDeadlineExpired(ReviewValidationError):
    """The revision deadline has passed."""


class TransientReviewError(AbstractReviewError):
    """The transaction was aborted and fully rolled back; the operation can be retried."""
