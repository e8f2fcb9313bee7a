# notifications/admin.py
from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "recipient", "notification_type", "created_at", "read_at")
    list_filter = ("notification_type", "read_at")
    search_fields = ("message", "recipient__first_name", "recipient__last_name")
    readonly_fields = ("created_at",)
    raw_id_fields = ("recipient",)
