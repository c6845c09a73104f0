"""pytest common stuff and fixtures."""

import pytest
from pytest_factoryboy import register

from ..factories import (
    AccountFactory,
    AuthorAccountFactory,
    CategoryFactory,
    EventFactory,
    RegistrantFactory,
)

# Provides the `account` and `account_factory` fixtures.
register(AccountFactory, "account")


@pytest.fixture
def admin():
    """Staff account: administrator of the review process."""
    return AccountFactory(
        username="admin",
        email="admin@example.com",
        first_name="Ada",
        last_name="Admin",
        is_staff=True,
    )


@pytest.fixture
def event():
    return EventFactory(
        code="atlas",
        name="Atlas conference",
        sender_name="Atlas secretariat",
        sender_email="secretariat@example.com",
    )


@pytest.fixture
def reviewers():
    return AccountFactory.create_batch(3)


@pytest.fixture
def category(event, reviewers):
    """A category whose pool is the `reviewers` fixture, in order."""
    return CategoryFactory(event=event, name="Plenary", reviewers=reviewers)


@pytest.fixture
def registrant(event):
    return RegistrantFactory(event=event, first_name="Rita", email="rita@example.com")


@pytest.fixture
def author_account():
    return AuthorAccountFactory(name="Arthur Dent", email="arthur@example.com")
