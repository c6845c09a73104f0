"""Utility factories.

Used in management commands and tests.
"""

import factory
from django.contrib.auth import get_user_model
from faker.providers import lorem

from .models import (
    AuthorAccount,
    Category,
    CategoryReviewer,
    Event,
    Registrant,
    ReviewerProfile,
)

factory.Faker.add_provider(lorem)

Account = get_user_model()


class AccountFactory(factory.django.DjangoModelFactory):
    """Plain user account."""

    class Meta:
        model = Account

    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    is_staff = False
    is_active = True


class EventFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Event

    name = factory.Faker("sentence", nb_words=3)
    code = factory.Sequence(lambda n: f"event-{n}")
    email_enabled = True
    sender_name = factory.Faker("company")
    sender_email = factory.Faker("company_email")
    notify_admins_on_review_approval = False


class CategoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Category

    event = factory.SubFactory(EventFactory)
    name = factory.Sequence(lambda n: f"Category {n}")

    @factory.post_generation
    def reviewers(self, create, extracted, **kwargs):
        """Fill the pool keeping the order of the given reviewers."""
        if not create or not extracted:
            return
        for position, reviewer in enumerate(extracted):
            CategoryReviewer.objects.create(category=self, reviewer=reviewer, position=position)


class RegistrantFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Registrant

    event = factory.SubFactory(EventFactory)
    user = factory.SubFactory(AccountFactory)
    registration_id = factory.Sequence(lambda n: f"REG-{n:05d}")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    email = factory.Faker("email")


class AuthorAccountFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AuthorAccount

    user = factory.SubFactory(AccountFactory)
    name = factory.Faker("name")
    email = factory.Faker("email")
    affiliation = factory.Faker("company")


class ReviewerProfileFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ReviewerProfile
        django_get_or_create = ("reviewer",)

    reviewer = factory.SubFactory(AccountFactory)
    assigned_abstracts_count = 0
