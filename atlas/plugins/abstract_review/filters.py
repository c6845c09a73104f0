import django_filters
from django.db.models import Q, QuerySet
from django.utils.translation import gettext_lazy as _

from atlas.event_profile.models import Category

from .models import Abstract


class AbstractFilter(django_filters.FilterSet):
    """Filter the abstracts of an event in the review progress listing."""

    status = django_filters.MultipleChoiceFilter(choices=Abstract.Status.choices)
    category = django_filters.ModelChoiceFilter(queryset=Category.objects.all())
    reviewer = django_filters.NumberFilter(field_name="assignments__reviewer", label=_("Reviewer"), distinct=True)
    lacking_reviewers = django_filters.BooleanFilter(method="filter_lacking_reviewers", label=_("Without reviewers"))
    q = django_filters.CharFilter(method="filter_search", label=_("Search"))

    class Meta:
        model = Abstract
        fields = ["status", "category", "final_decision"]

    def __init__(self, *args, event=None, **kwargs):
        super().__init__(*args, **kwargs)
        if event is not None:
            self.filters["category"].queryset = Category.objects.filter(event=event)

    def filter_lacking_reviewers(self, queryset: QuerySet, name: str, value: bool) -> QuerySet:
        if value is None:
            return queryset
        if value:
            return queryset.lacking_reviewers()
        return queryset.filter(assignments__isnull=False).distinct()

    def filter_search(self, queryset: QuerySet, name: str, value: str) -> QuerySet:
        if not value:
            return queryset
        return queryset.filter(Q(title__icontains=value) | Q(authors__icontains=value) | Q(topic__icontains=value))
