"""Assign the category reviewers to the abstracts that have none."""

from django.core.management.base import BaseCommand, CommandError

from atlas.event_profile.models import Event

from ...communication_utils import get_system_user
from ...custom_types import AdminCaller
from ...logic import AutoAssignReviewers


class Command(BaseCommand):
    help = __doc__  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument("event_codes", nargs="+", help="Codes of the events to process.")

    def handle(self, *args, **options):
        caller = AdminCaller(user=get_system_user())
        for code in options["event_codes"]:
            try:
                event = Event.objects.get(code=code)
            except Event.DoesNotExist:
                raise CommandError(f"Event {code} not found")
            updated = AutoAssignReviewers(event=event, caller=caller).run()
            self.stdout.write(f"{code}: {updated} abstracts assigned")
