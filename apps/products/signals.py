"""
Django signals for the products app.
Keeps the cached option sets of attributes in step with the database.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Attribute, AttributeOption
from .services.attribute_registry import invalidate_option_cache


@receiver([post_save, post_delete], sender=AttributeOption)
def refresh_option_cache(sender, instance, **kwargs):
    """
    Drop the cached option values when an option is added, edited or removed.
    """
    invalidate_option_cache(instance.attribute)


@receiver([post_save, post_delete], sender=Attribute)
def refresh_attribute_cache(sender, instance, **kwargs):
    # Data type changes alter whether options are consulted at all
    invalidate_option_cache(instance)
