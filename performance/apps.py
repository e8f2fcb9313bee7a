# -*- coding: utf-8 -*-
from django.apps import AppConfig


class PerformanceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "performance"
    verbose_name = "Performance Appraisal"

    def ready(self):
        # أدوار + صلاحيات السجلات + إبطال ذاكرة الأسماء
        from . import signals  # noqa: F401
