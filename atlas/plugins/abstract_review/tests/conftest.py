import pytest
from django.core import mail

from atlas.event_profile.tests.conftest import *  # noqa

from ..custom_types import AdminCaller, ReviewerCaller, SubmitterCaller
from ..factories import AbstractFactory
from ..logic import AssignReviewers
from ..models import Abstract


@pytest.fixture
def admin_caller(admin):
    return AdminCaller(user=admin)


@pytest.fixture
def abstract(event, registrant, category):
    """A submitted abstract, owned by a registrant."""
    return AbstractFactory(
        event=event,
        registration=registrant,
        category=category,
        title="Tidal forces in small moons",
        status=Abstract.Status.SUBMITTED,
    )


@pytest.fixture
def author_abstract(event, author_account, category):
    """A submitted abstract, owned by an author account."""
    return AbstractFactory(
        event=event,
        registration=None,
        author=author_account,
        category=category,
        status=Abstract.Status.SUBMITTED,
    )


@pytest.fixture
def assigned_abstract(abstract, reviewers, admin_caller):
    """The `abstract` with all the `reviewers` assigned (and their notifications discarded)."""
    AssignReviewers(
        abstract_id=abstract.pk,
        reviewer_identities=[reviewer.pk for reviewer in reviewers],
        caller=admin_caller,
    ).run()
    mail.outbox.clear()
    abstract.refresh_from_db()
    return abstract


@pytest.fixture
def reviewer_caller(reviewers):
    """The first reviewer, acting on its own behalf."""
    return ReviewerCaller(user=reviewers[0])


@pytest.fixture
def submitter_caller(registrant):
    return SubmitterCaller(submitter=registrant)
