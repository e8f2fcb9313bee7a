# -*- coding: utf-8 -*-
import re

from django import forms
from django.core.exceptions import ValidationError as DjangoValidationError

from performance.exceptions import ValidationError

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def snake_keys(data: dict, aliases: dict = None) -> dict:
    aliases = aliases or {}
    return {aliases.get(k, snake(k)): v for k, v in (data or {}).items()}


class IdListField(forms.Field):
    """A JSON list of integer ids."""
    default_error_messages = {"invalid": "Enter a list of ids."}

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        super().__init__(**kwargs)

    def to_python(self, value):
        if value in (None, "", [], ()):
            return []
        if isinstance(value, (str, bytes, dict)) or not hasattr(value, "__iter__"):
            raise DjangoValidationError(self.error_messages["invalid"], code="invalid")
        try:
            return list(dict.fromkeys(int(v) for v in value))
        except (TypeError, ValueError):
            raise DjangoValidationError(self.error_messages["invalid"], code="invalid")


class ListField(forms.Field):
    """A JSON list kept as-is (sections, criteria, action items ...)."""
    default_error_messages = {"invalid": "Enter a list."}

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        super().__init__(**kwargs)

    def to_python(self, value):
        if value in (None, ""):
            return []
        if not isinstance(value, (list, tuple)):
            raise DjangoValidationError(self.error_messages["invalid"], code="invalid")
        return list(value)


class DictField(forms.Field):
    default_error_messages = {"invalid": "Enter an object."}

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        super().__init__(**kwargs)

    def to_python(self, value):
        if value in (None, ""):
            return {}
        if not isinstance(value, dict):
            raise DjangoValidationError(self.error_messages["invalid"], code="invalid")
        return dict(value)


class PayloadForm(forms.Form):
    """
    Validates a JSON payload (camelCase or snake_case keys) for a service call.

    `payload()` returns only the keys the caller actually sent, so services
    keep their own defaults and partial updates stay partial.
    """
    aliases: dict = {}

    def __init__(self, data=None, *, partial: bool = False, **kwargs):
        super().__init__(data=snake_keys(data or {}, self.aliases), **kwargs)
        self.partial = partial
        if partial:
            for field in self.fields.values():
                field.required = False

    def payload(self) -> dict:
        if not self.is_valid():
            errors = {name: [str(e) for e in errs] for name, errs in self.errors.items()}
            message = "; ".join(f"{name}: {' '.join(msgs)}" for name, msgs in errors.items())
            raise ValidationError(message, details=errors)
        return {name: self.cleaned_data[name] for name in self.fields if name in self.data}
