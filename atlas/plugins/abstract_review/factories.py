"""Utility factories.

Used in tests.
"""

import factory
from django.utils import timezone

from atlas.event_profile.factories import (
    AccountFactory,
    CategoryFactory,
    EventFactory,
    RegistrantFactory,
)

from .models import Abstract, Review, ReviewerAssignment


class AbstractFactory(factory.django.DjangoModelFactory):
    """Abstract submitted by a registrant."""

    class Meta:
        model = Abstract

    event = factory.SubFactory(EventFactory)
    registration = factory.SubFactory(RegistrantFactory, event=factory.SelfAttribute("..event"))
    author = None
    title = factory.Faker("sentence", nb_words=6)
    authors = factory.Faker("name")
    content = factory.Faker("paragraph", nb_sentences=5)
    category = factory.SubFactory(CategoryFactory, event=factory.SelfAttribute("..event"))
    topic = factory.Faker("word")
    status = Abstract.Status.SUBMITTED


class ReviewerAssignmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ReviewerAssignment

    abstract = factory.SubFactory(AbstractFactory)
    reviewer = factory.SubFactory(AccountFactory)


class ReviewFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Review

    abstract = factory.SubFactory(AbstractFactory)
    reviewer = factory.SubFactory(AccountFactory)
    score = factory.Faker("pyfloat", min_value=1, max_value=10, right_digits=1)
    comments = factory.Faker("paragraph")
    decision = Review.Decisions.UNDECIDED
    is_complete = True
    date_reviewed = factory.LazyFunction(timezone.now)
