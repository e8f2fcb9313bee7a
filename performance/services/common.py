# performance/services/common.py
"""Small helpers shared by the service modules."""
from __future__ import annotations

import datetime
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from performance.exceptions import ConflictError, NotFoundError, ValidationError


def get_or_404(queryset_or_model, pk, label: str = None):
    """Fetch by primary key or raise NotFoundError."""
    qs = getattr(queryset_or_model, "objects", queryset_or_model)
    obj = qs.filter(pk=pk).first() if pk is not None else None
    if obj is None:
        name = label or qs.model._meta.verbose_name
        raise NotFoundError(f"{name.capitalize()} {pk} not found.", details={"id": pk})
    return obj


def lock_or_404(model, pk, label: str = None):
    """Same as get_or_404 but takes a row lock (must run inside atomic)."""
    return get_or_404(model.objects.select_for_update(), pk, label)


def full_clean(instance, exclude=None) -> None:
    """Run model validation and translate Django's error into ours."""
    try:
        instance.full_clean(exclude=exclude, validate_unique=False, validate_constraints=False)
    except DjangoValidationError as exc:
        raise ValidationError.from_django(exc) from exc


def save_versioned(instance, **fields) -> None:
    """
    Compare-and-swap write on a VersionedMixin row.
    Raises ConflictError if someone else bumped the version first.
    """
    if not instance.compare_and_bump(**fields):
        raise ConflictError(
            f"{instance._meta.verbose_name.capitalize()} {instance.pk} was modified concurrently; reload and retry.",
            details={"id": instance.pk, "version": instance.version},
        )


def require_text(value, field_name: str) -> str:
    text = (value or "").strip() if isinstance(value, str) or value is None else str(value).strip()
    if not text:
        raise ValidationError(f"{field_name} is required.", details={"field": field_name})
    return text


def as_date(value, field_name: str) -> Optional[datetime.date]:
    """Accept a date, a datetime or an ISO string; blank → None."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"'{value}' is not a valid date.", details={"field": field_name})
    return parsed


def as_datetime(value, field_name: str) -> Optional[datetime.datetime]:
    """Accept a datetime or an ISO string; naive values get the current timezone."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        parsed = value
    else:
        try:
            parsed = parse_datetime(str(value))
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(f"'{value}' is not a valid date-time.", details={"field": field_name})
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed
