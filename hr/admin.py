# hr/admin.py
from django.contrib import admin

from hr.models import Department, Job, Employee


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "parent", "manager", "member_count", "active")
    list_filter = ("active",)
    search_fields = ("name",)
    autocomplete_fields = ("parent", "manager")


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ("name", "department", "active")
    list_filter = ("active", "department")
    search_fields = ("name",)


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("name", "department", "job", "manager", "user", "active")
    list_filter = ("active", "department")
    search_fields = ("first_name", "last_name", "work_email")
    autocomplete_fields = ("department", "job", "manager", "user")
