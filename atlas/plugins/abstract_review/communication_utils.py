"""Utility functions related to the communication system.

Notifications are best-effort: they are dispatched after the workflow changes are committed, and a delivery failure
is logged (with abstract, recipient and operation) but never reported to the caller nor retried.
"""

from typing import Any, Dict, Optional, Tuple

import html2text
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.template import Context, Template
from django.utils.module_loading import import_string

from atlas.event_profile.models import EventEmailTemplate
from atlas.utils.logger import get_logger

from . import plugin_settings
from .custom_types import AssignmentResult, ReviewSubmission, SubmitterContact
from .models import Abstract

Account = get_user_model()
logger = get_logger(__name__)

SYSTEM_USER_EMAIL = "abstract-review@atlas.invalid"


class NotificationDispatcher:
    """Deliver a single notification.

    Implementations return True on success; a False return value or an exception are both logged as failures.
    """

    def notify(self, recipient_address: str, subject: str, body: str, from_email: Optional[str] = None) -> bool:
        raise NotImplementedError


class EmailNotificationDispatcher(NotificationDispatcher):
    """Send notifications as HTML emails, with a plain text alternative."""

    def notify(self, recipient_address: str, subject: str, body: str, from_email: Optional[str] = None) -> bool:
        sent = send_mail(
            subject,
            html2text.html2text(body),
            from_email,
            [recipient_address],
            fail_silently=False,
            html_message=body,
        )
        return bool(sent)


def get_dispatcher() -> NotificationDispatcher:
    return import_string(plugin_settings.get_setting("NOTIFICATION_DISPATCHER"))()


def get_system_user() -> Account:
    """Return the technical account acting on behalf of scheduled operations."""
    account, _ = Account.objects.get_or_create(
        username="abstract-review-system",
        defaults={
            "email": SYSTEM_USER_EMAIL,
            "first_name": "Abstract review",
            "last_name": "System",
            "is_staff": True,
            "is_active": True,
        },
    )
    return account


def get_submitter_contact(abstract: Abstract) -> Optional[SubmitterContact]:
    """
    Resolve name and address of the submitter of the abstract.

    Registrants are addressed by their first name; author accounts only have a full name, of which the first word is
    used.

    :return: the contact, or None if the submitter has no email address
    """
    submitter = abstract.submitter
    if not submitter or not submitter.email:
        return None
    return SubmitterContact(first_name=submitter.first_name, email=submitter.email)


def render_template(template_str: str, context_dict: Dict[str, Any]) -> str:
    """Auxiliary function to "ease" the rendering of a string template."""
    template = Template(template_str)
    context = Context(context_dict)
    return template.render(context)


def get_email_templates(abstract: Abstract, code: str) -> Tuple[str, str]:
    """Return subject and body templates for the notification `code`, honoring the event overrides."""
    override = EventEmailTemplate.objects.filter(event_id=abstract.event_id, code=code).first()
    if override:
        return override.subject, override.body
    templates = plugin_settings.get_setting("EMAIL_TEMPLATES")
    template = templates.get(code) or plugin_settings.DEFAULT_EMAIL_TEMPLATES[code]
    return template["subject"], template["body"]


def dispatch_notification(
    abstract: Abstract,
    recipient_address: Optional[str],
    code: str,
    context: Dict[str, Any],
    operation: str,
) -> bool:
    """
    Render and deliver one notification, logging any failure.

    :param abstract: the abstract the notification is about
    :param recipient_address: where to deliver the notification
    :param code: the notification code, used to pick the templates
    :param context: additional template context
    :param operation: the workflow operation that triggered the notification (for logging)
    :return: whether the notification was delivered
    """
    if getattr(settings, "NO_NOTIFICATION", None):
        return False
    event = abstract.event
    if not event.email_enabled:
        logger.warning(f"Email disabled for event {event.code}: {operation} notification for {abstract.pk} skipped")
        return False
    if not recipient_address:
        logger.warning(f"No recipient address: {operation} notification for {abstract.pk} skipped")
        return False

    context = {"abstract": abstract, "event": event, **context}
    subject_template, body_template = get_email_templates(abstract, code)
    subject = " ".join(render_template(subject_template, context).split())
    body = render_template(body_template, context)

    try:
        delivered = get_dispatcher().notify(recipient_address, subject, body, from_email=event.from_email)
    except Exception:
        logger.exception(
            f"Notification failed: abstract={abstract.pk} recipient={recipient_address} operation={operation}",
        )
        return False
    if not delivered:
        logger.error(
            f"Notification not delivered: abstract={abstract.pk} recipient={recipient_address} operation={operation}",
        )
        return False
    return True


def notify_reviewers_assigned(result: AssignmentResult) -> int:
    """Notify each newly assigned reviewer. Returns the number of delivered notifications."""
    delivered = 0
    for reviewer in result.assigned_reviewers:
        delivered += dispatch_notification(
            result.abstract,
            reviewer.email,
            plugin_settings.REVIEWER_ASSIGNED,
            {"recipient_name": reviewer.get_full_name() or reviewer.email, "reviewer": reviewer},
            operation="assign_reviewers",
        )
    return delivered


def notify_review_approval(submission: ReviewSubmission) -> int:
    """Notify the submitter (and optionally the staff) that a reviewer approved the abstract."""
    abstract = submission.abstract
    reviewer = submission.review.reviewer
    delivered = 0
    contact = get_submitter_contact(abstract)
    if contact:
        delivered += dispatch_notification(
            abstract,
            contact.email,
            plugin_settings.ABSTRACT_APPROVED_BY_REVIEWER,
            {"recipient_name": contact.first_name},
            operation="submit_review",
        )
    else:
        logger.warning(f"Submitter of {abstract.pk} has no email address: approval notification skipped")

    if abstract.event.notify_admins_on_review_approval:
        staff = (
            Account.objects.filter(is_staff=True, is_active=True).exclude(email="").exclude(email=SYSTEM_USER_EMAIL)
        )
        for admin in staff:
            delivered += dispatch_notification(
                abstract,
                admin.email,
                plugin_settings.ADMIN_REVIEW_APPROVAL,
                {
                    "recipient_name": admin.get_full_name() or admin.email,
                    "reviewer": reviewer,
                    "review": submission.review,
                },
                operation="submit_review",
            )
    return delivered


def notify_revision_resubmitted(abstract: Abstract) -> int:
    """Ask every assigned reviewer to review the revised abstract."""
    delivered = 0
    for reviewer in abstract.reviewers.all():
        delivered += dispatch_notification(
            abstract,
            reviewer.email,
            plugin_settings.REVISION_RESUBMITTED,
            {"recipient_name": reviewer.get_full_name() or reviewer.email, "reviewer": reviewer},
            operation="resubmit_revision",
        )
    return delivered


ADMIN_DECISION_NOTIFICATIONS = {
    Abstract.FinalDecisions.APPROVED.value: plugin_settings.ABSTRACT_APPROVED,
    Abstract.FinalDecisions.REJECTED.value: plugin_settings.ABSTRACT_REJECTED,
    Abstract.FinalDecisions.REVISION_REQUESTED.value: plugin_settings.ABSTRACT_REVISION_REQUESTED,
}


def notify_admin_decision(abstract: Abstract) -> int:
    """Tell the submitter about an administrator's decision."""
    contact = get_submitter_contact(abstract)
    if not contact:
        logger.warning(f"Submitter of {abstract.pk} has no email address: decision notification skipped")
        return 0
    return int(
        dispatch_notification(
            abstract,
            contact.email,
            ADMIN_DECISION_NOTIFICATIONS[abstract.final_decision],
            {
                "recipient_name": contact.first_name,
                "reason": abstract.decision_reason,
                "revision_deadline": abstract.revision_deadline,
            },
            operation="admin_decision",
        ),
    )
