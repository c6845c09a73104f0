from typing import TYPE_CHECKING, Optional, Union

from django.contrib.auth import get_user_model

from atlas.event_profile.models import AuthorAccount, Registrant

if TYPE_CHECKING:
    from .models import Abstract

Account = get_user_model()


def is_admin(user: Optional[Account]) -> bool:
    """Administrators of the review process are staff accounts."""
    return bool(user and user.is_active and (user.is_staff or user.is_superuser))


def has_admin_role_by_abstract(instance: "Abstract", user: Account) -> bool:
    """
    Check if the user can take administrative decisions on the abstract.

    :param instance: An abstract instance
    :param user: The user to check for role.
    """
    return is_admin(user)


def is_abstract_reviewer(instance: "Abstract", user: Account) -> bool:
    """Check if the user is among the reviewers assigned to the abstract."""
    if not user or not user.pk:
        return False
    return instance.assignments.filter(reviewer=user).exists()


def is_abstract_submitter(instance: "Abstract", submitter: Union[Registrant, AuthorAccount, None]) -> bool:
    """Check if `submitter` owns the abstract, through either submission path."""
    if isinstance(submitter, Registrant):
        return instance.registration_id is not None and instance.registration_id == submitter.pk
    if isinstance(submitter, AuthorAccount):
        return instance.author_id is not None and instance.author_id == submitter.pk
    return False


def can_see_review_progress(instance: "Abstract", user: Account) -> bool:
    return is_admin(user) or is_abstract_reviewer(instance, user)
