from django.dispatch import receiver
from django.utils import timezone
from django_fsm.signals import post_transition

from atlas.utils.logger import get_logger

from .models import Abstract

logger = get_logger(__name__)


@receiver(post_transition, sender=Abstract)
def log_state_change(instance, name, source, target, **kwargs):
    """Keep track of the last status change; the instance is saved by the caller of the transition."""
    if source == target:
        return
    instance.latest_state_change = timezone.now()
    logger.info(f"Abstract {instance.pk}: {source} -> {target} ({name})")
