from typing import Dict

from django.db import models
from django.db.models import Avg, Case, Count, F, FloatField, IntegerField, OuterRef, Q, Subquery, Value, When
from django.db.models.functions import Cast, Coalesce, Round


class AbstractQuerySet(models.QuerySet):
    def lacking_reviewers(self) -> "AbstractQuerySet":
        """Filter the abstracts without any assigned reviewer."""
        return self.filter(assignments__isnull=True)

    def with_category(self) -> "AbstractQuerySet":
        return self.filter(category__isnull=False)

    def pending_review(self) -> "AbstractQuerySet":
        """Filter the abstracts waiting for reviewers' decisions."""
        return self.filter(status__in=[self.model.Status.UNDER_REVIEW, self.model.Status.REVISED_PENDING_REVIEW])

    def submitted_by(self, submitter) -> "AbstractQuerySet":
        """Filter the abstracts owned by a registrant or an author account."""
        from atlas.event_profile.models import Registrant

        if isinstance(submitter, Registrant):
            return self.filter(registration=submitter)
        return self.filter(author=submitter)

    def count_by(self, field: str) -> Dict[str, int]:
        """Count the abstracts for each value of ``field``; abstracts without a value are not counted."""
        rows = self.exclude(**{f"{field}__isnull": True}).order_by().values(field).annotate(count=Count("pk"))
        return {row[field]: row["count"] for row in rows}

    def _completed_reviews(self) -> Subquery:
        """
        Return a subquery counting the complete reviews written by the assigned reviewers of each abstract.
        """
        from .models import Review

        completed = (
            Review.objects.filter(
                abstract=OuterRef("pk"),
                is_complete=True,
                reviewer__abstract_assignments__abstract=OuterRef("pk"),
            )
            .order_by()
            .values("abstract")
            .annotate(count=Count("pk"))
            .values("count")[:1]
        )
        return Subquery(completed, output_field=IntegerField())

    def with_review_progress(self) -> "AbstractQuerySet":
        """
        Annotate the review progress of each abstract.

        Annotations match :py:func:`logic.get_review_progress`:
        ``total_assigned``, ``completed_reviews``, ``pending_reviews``, ``completion_percentage``.
        """
        return self.annotate(
            total_assigned=Count("assignments", distinct=True),
            completed_reviews=Coalesce(self._completed_reviews(), Value(0)),
        ).annotate(
            pending_reviews=F("total_assigned") - F("completed_reviews"),
            completion_percentage=Case(
                When(Q(total_assigned=0), then=Value(0.0)),
                default=Round(
                    Cast(F("completed_reviews"), FloatField()) * 100.0 / Cast(F("total_assigned"), FloatField()),
                    precision=1,
                ),
                output_field=FloatField(),
            ),
        )


class ReviewQuerySet(models.QuerySet):
    def complete(self) -> "ReviewQuerySet":
        return self.filter(is_complete=True)

    def reviewer_statistics(self) -> models.QuerySet:
        """
        Aggregate the reviews by reviewer, busiest reviewers first.

        Each row has the reviewer's data (``reviewer``, ``reviewer__first_name``, ``reviewer__last_name``,
        ``reviewer__email``), the number of reviews (``review_count``), how many are complete (``completed_reviews``)
        and the average score of the complete ones (``average_score``).
        """
        is_complete = Q(is_complete=True)
        return (
            self.order_by()
            .values("reviewer", "reviewer__first_name", "reviewer__last_name", "reviewer__email")
            .annotate(
                review_count=Count("pk"),
                completed_reviews=Count("pk", filter=is_complete),
                average_score=Avg("score", filter=is_complete),
            )
            .order_by("-review_count", "reviewer")
        )
