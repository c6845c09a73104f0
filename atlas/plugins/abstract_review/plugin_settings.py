"""Plugin configuration.

Projects customize the plugin through the ``ABSTRACT_REVIEW`` dictionary in Django settings; missing keys fall back
to :py:data:`DEFAULT_SETTINGS`.
"""

from typing import Any

from django.conf import settings

SHORT_NAME = "abstract_review"
DISPLAY_NAME = "Abstract review"

REVIEWER_ASSIGNED = "reviewer_assigned"
ABSTRACT_APPROVED_BY_REVIEWER = "abstract_approved_by_reviewer"
ADMIN_REVIEW_APPROVAL = "admin_review_approval"
REVISION_RESUBMITTED = "revision_resubmitted"
ABSTRACT_APPROVED = "abstract_approved"
ABSTRACT_REJECTED = "abstract_rejected"
ABSTRACT_REVISION_REQUESTED = "abstract_revision_requested"

DEFAULT_EMAIL_TEMPLATES = {
    REVIEWER_ASSIGNED: {
        "subject": "[{{ event.name }}] New abstract assigned for review",
        "body": (
            "<p>Dear {{ recipient_name }},</p>"
            "<p>the abstract <b>{{ abstract.title }}</b> (#{{ abstract.pk }}) has been assigned to you for review.</p>"
            "<p>Best regards,<br>{{ event.name }}</p>"
        ),
    },
    ABSTRACT_APPROVED_BY_REVIEWER: {
        "subject": "[{{ event.name }}] Your abstract has been approved",
        "body": (
            "<p>Dear {{ recipient_name }},</p>"
            "<p>we are pleased to inform you that your abstract <b>{{ abstract.title }}</b> "
            "(#{{ abstract.pk }}) has been approved.</p>"
            "<p>Best regards,<br>{{ event.name }}</p>"
        ),
    },
    ADMIN_REVIEW_APPROVAL: {
        "subject": "[{{ event.name }}] Abstract #{{ abstract.pk }} approved by a reviewer",
        "body": (
            "<p>The abstract <b>{{ abstract.title }}</b> (#{{ abstract.pk }}) has been approved by "
            "{{ reviewer.get_full_name|default:reviewer.email }}.</p>"
            "{% if review.score is not None %}<p>Score: {{ review.score }}</p>{% endif %}"
        ),
    },
    REVISION_RESUBMITTED: {
        "subject": "[{{ event.name }}] Revised abstract ready for review",
        "body": (
            "<p>Dear {{ recipient_name }},</p>"
            "<p>the abstract <b>{{ abstract.title }}</b> (#{{ abstract.pk }}) has been revised by its submitter "
            "and is waiting for your review.</p>"
            "<p>Best regards,<br>{{ event.name }}</p>"
        ),
    },
    ABSTRACT_APPROVED: {
        "subject": "[{{ event.name }}] Abstract approved",
        "body": (
            "<p>Dear {{ recipient_name }},</p>"
            "<p>your abstract <b>{{ abstract.title }}</b> (#{{ abstract.pk }}) has been approved.</p>"
            "{% if reason %}<p>{{ reason }}</p>{% endif %}"
            "<p>Best regards,<br>{{ event.name }}</p>"
        ),
    },
    ABSTRACT_REJECTED: {
        "subject": "[{{ event.name }}] Abstract not accepted",
        "body": (
            "<p>Dear {{ recipient_name }},</p>"
            "<p>we regret to inform you that your abstract <b>{{ abstract.title }}</b> (#{{ abstract.pk }}) "
            "has not been accepted.</p>"
            "{% if reason %}<p>Reason: {{ reason }}</p>{% endif %}"
            "<p>Best regards,<br>{{ event.name }}</p>"
        ),
    },
    ABSTRACT_REVISION_REQUESTED: {
        "subject": "[{{ event.name }}] Revision requested for your abstract",
        "body": (
            "<p>Dear {{ recipient_name }},</p>"
            "<p>a revision has been requested for your abstract <b>{{ abstract.title }}</b> (#{{ abstract.pk }}).</p>"
            "{% if reason %}<p>{{ reason }}</p>{% endif %}"
            "{% if revision_deadline %}<p>Please submit the revised version by "
            "{{ revision_deadline|date:'DATETIME_FORMAT' }}.</p>{% endif %}"
            "<p>Best regards,<br>{{ event.name }}</p>"
        ),
    },
}

DEFAULT_SETTINGS = {
    "NOTIFICATION_DISPATCHER": "atlas.plugins.abstract_review.communication_utils.EmailNotificationDispatcher",
    "AUTO_ASSIGNMENT_FUNCTIONS": {
        None: "atlas.plugins.abstract_review.events.assignment.category_pool_reviewers",
    },
    "REQUIRE_REVIEW_SCORE": False,
    "TRANSACTION_RETRIES": 3,
    "EMAIL_TEMPLATES": DEFAULT_EMAIL_TEMPLATES,
}


def get_setting(name: str) -> Any:
    """Return the value of the plugin setting `name`, falling back on the default."""
    project_settings = getattr(settings, "ABSTRACT_REVIEW", {}) or {}
    if name in project_settings:
        return project_settings[name]
    return DEFAULT_SETTINGS[name]
