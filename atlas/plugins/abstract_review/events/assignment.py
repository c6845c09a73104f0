"""Automatic assignment functions, used when sweeping abstracts without reviewers.

Event level configuration is made using the 'AUTO_ASSIGNMENT_FUNCTIONS' plugin setting: it maps the event code to
the dotted path of the function to use, with the `None` key as fallback.

Each function receives the abstract and its (already resolved) category and returns the reviewer identities to
assign, in order.
"""

from typing import List

from django.db.models import F
from django.db.models.functions import Coalesce
from django.utils.module_loading import import_string

from atlas.event_profile.models import Category

from .. import plugin_settings
from ..models import Abstract


def category_pool_reviewers(abstract: Abstract, category: Category) -> List[int]:
    """Assign the whole reviewer pool of the category. Default algorithm."""
    return list(category.get_reviewer_pool().values_list("pk", flat=True))


def least_loaded_category_reviewers(abstract: Abstract, category: Category) -> List[int]:
    """
    Assign the pool members with the lowest workload.

    The number of reviewers is capped by the event's `reviewers_per_abstract`, when set; reviewers without a profile
    have no workload yet.
    """
    pool = (
        category.get_reviewer_pool()
        .annotate(workload=Coalesce(F("reviewer_profile__assigned_abstracts_count"), 0))
        .order_by("workload", "categoryreviewer__position", "pk")
    )
    reviewers = list(pool.values_list("pk", flat=True))
    limit = abstract.event.reviewers_per_abstract
    if limit:
        reviewers = reviewers[:limit]
    return reviewers


def dispatch_auto_assignment(abstract: Abstract, category: Category) -> List[int]:
    """Call the assignment function configured for the abstract's event."""
    functions = plugin_settings.get_setting("AUTO_ASSIGNMENT_FUNCTIONS")
    function_path = functions.get(abstract.event.code, functions.get(None))
    return import_string(function_path)(abstract=abstract, category=category)
