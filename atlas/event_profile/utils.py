"""Lookups of event-side collaborators: categories and reviewer accounts."""

from typing import Any, Optional

from django.contrib.auth import get_user_model

from .models import Category

Account = get_user_model()

USER_NOT_FOUND = "User not found"
USER_EMAIL_NOT_FOUND = "User email not found"


class ReviewerAccountError(Exception):
    """A reviewer identity cannot be used for an assignment."""

    reason = ""

    def __init__(self, identity: Any):
        self.identity = identity
        super().__init__(f"{self.reason}: {identity!r}")


class ReviewerNotFound(ReviewerAccountError):
    reason = USER_NOT_FOUND


class ReviewerNotContactable(ReviewerAccountError):
    reason = USER_EMAIL_NOT_FOUND


def parse_identity(value: Any) -> Optional[int]:
    """
    Normalize an account or category identifier.

    Identifiers reach us as integers (internal calls) or as strings (form data, JSON); both are reduced to ``int``.

    :param value: the raw identifier
    :return: the identifier or None if the value cannot be an identifier
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        value = value.strip()
        if value.isdigit() and int(value) > 0:
            return int(value)
    return None


def get_category(event_id: int, category_id: Any) -> Category:
    """
    Resolve a category of the given event.

    The lookup is strict: a value that is not a valid identifier, or a category belonging to another event, raise
    :py:class:`Category.DoesNotExist`.
    """
    pk = parse_identity(category_id)
    if pk is None:
        raise Category.DoesNotExist(f"Invalid category identifier {category_id!r}")
    return Category.objects.get(pk=pk, event_id=event_id)


def get_reviewer_account(identity: Any) -> Account:
    """
    Resolve a reviewer identity to an active account with a contact address.

    :raises ReviewerNotFound: the identity does not match any active account
    :raises ReviewerNotContactable: the account has no email address
    """
    pk = parse_identity(identity)
    if pk is None:
        raise ReviewerNotFound(identity)
    try:
        account = Account.objects.get(pk=pk, is_active=True)
    except Account.DoesNotExist:
        raise ReviewerNotFound(identity)
    if not account.email:
        raise ReviewerNotContactable(identity)
    return account
