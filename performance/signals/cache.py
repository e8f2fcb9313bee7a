# performance/signals/cache.py
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from hr.models import Department, Employee
from performance.services.progress import lookup_cache


@receiver([post_save, post_delete], sender=Employee)
def drop_cached_employee(sender, instance, **kwargs):
    lookup_cache.invalidate_employee(instance.pk)


@receiver([post_save, post_delete], sender=Department)
def drop_cached_department(sender, instance, **kwargs):
    lookup_cache.invalidate_department(instance.pk)
