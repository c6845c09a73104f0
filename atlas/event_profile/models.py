"""Event-level configuration consumed by the abstract review workflow.

Events, categories and submitter records are owned by the registration side of the system: the review plugin only
reads them, with the exception of :py:class:`ReviewerProfile` whose workload counter is updated on assignment.
"""

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import models
from django.utils.translation import gettext_lazy as _

Account = get_user_model()


class Event(models.Model):
    """A conference or meeting accepting abstract submissions."""

    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=50, unique=True, help_text=_("Short identifier, used in settings lookups."))
    email_enabled = models.BooleanField(
        default=True,
        help_text=_("Master switch: when off, no notification is sent for this event."),
    )
    sender_name = models.CharField(max_length=255, blank=True)
    sender_email = models.EmailField(blank=True)
    notify_admins_on_review_approval = models.BooleanField(
        default=False,
        help_text=_("Notify staff members when a reviewer approves an abstract."),
    )
    reviewers_per_abstract = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        help_text=_("Maximum number of reviewers picked by workload-based automatic assignment."),
    )

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def from_email(self) -> str:
        """Sender address for the event's notifications."""
        if not self.sender_email:
            return settings.DEFAULT_FROM_EMAIL
        if self.sender_name:
            return f"{self.sender_name} <{self.sender_email}>"
        return self.sender_email


class Category(models.Model):
    """Abstract category of an event, with its pool of reviewers."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="categories")
    name = models.CharField(max_length=255)
    reviewers = models.ManyToManyField(
        Account,
        through="CategoryReviewer",
        related_name="reviewed_categories",
        blank=True,
    )

    class Meta:
        verbose_name_plural = "categories"
        constraints = [
            models.UniqueConstraint(fields=["event", "name"], name="unique_category_name_per_event"),
        ]

    def __str__(self):
        return f"{self.name} ({self.event.code})"

    def get_reviewer_pool(self) -> models.QuerySet:
        """Return the pool of reviewers in the configured order."""
        return Account.objects.filter(categoryreviewer__category=self).order_by(
            "categoryreviewer__position",
            "categoryreviewer__id",
        )


class CategoryReviewer(models.Model):
    """Membership of a reviewer in a category pool."""

    category = models.ForeignKey(Category, on_delete=models.CASCADE)
    reviewer = models.ForeignKey(Account, on_delete=models.CASCADE)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]
        constraints = [
            models.UniqueConstraint(fields=["category", "reviewer"], name="unique_reviewer_per_category"),
        ]


class Registrant(models.Model):
    """A registered participant of an event, who can submit abstracts after registration."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrants")
    user = models.OneToOneField(
        Account,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registrant",
    )
    registration_id = models.CharField(max_length=50, blank=True)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150, blank=True)
    email = models.EmailField(blank=True)

    def __str__(self):
        return f"{self.first_name} {self.last_name}".strip()


class AuthorAccount(models.Model):
    """An author submitting abstracts before (or without) registering to the event."""

    user = models.OneToOneField(
        Account,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="author_account",
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    affiliation = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return self.name

    @property
    def first_name(self) -> str:
        return self.name.split()[0] if self.name.strip() else ""


class ReviewerProfile(models.Model):
    """Reviewer-level data: the workload counter used when picking reviewers."""

    reviewer = models.OneToOneField(Account, on_delete=models.CASCADE, related_name="reviewer_profile")
    assigned_abstracts_count = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.reviewer} ({self.assigned_abstracts_count})"


class EventEmailTemplate(models.Model):
    """Per-event override of a notification subject and body."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="email_templates")
    code = models.CharField(max_length=100)
    subject = models.CharField(max_length=255)
    body = models.TextField(help_text=_("Django template; the notification context is available."))

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "code"], name="unique_email_template_per_event"),
        ]

    def __str__(self):
        return f"{self.event.code}: {self.code}"
