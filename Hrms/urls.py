"""
URL configuration for Hrms project.
"""
# Hrms/urls.py
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("performance/", include(("performance.urls", "performance"), namespace="performance")),
    path("notifications/", include(("notifications.urls", "notifications"), namespace="notifications")),
    # لوحة الإدارة
    path("admin/", admin.site.urls),
]
