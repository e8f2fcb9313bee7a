# base/models/user.py
from __future__ import annotations
from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from .mixins import TimeStampedMixin, ActivableMixin


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra):
        if not email:
            raise ValueError("Users must have an email address")
        email = self.normalize_email(email).lower().strip()
        # AbstractUser يتطلب username كحقل، نولّده تلقائيًا إن لم يُمرّر
        extra.setdefault("username", email.split("@")[0])
        user = self.model(email=email, **extra)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra):
        extra.setdefault("is_staff", False)
        extra.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra)

    def create_superuser(self, email, password=None, **extra):
        extra.setdefault("is_staff", True)
        extra.setdefault("is_superuser", True)
        return self._create_user(email, password, **extra)

    def get_by_natural_key(self, email):
        """
        يسمح بالبحث عن المستخدم باستخدام EMAIL كحقل دخول.
        """
        return self.get(email__iexact=email.strip().lower())


class User(TimeStampedMixin, ActivableMixin, AbstractUser):
    """
    مستخدم النظام: تسجيل الدخول بالبريد، والأدوار عبر Django Groups
    (HR_MANAGER, DEPARTMENT_HEAD, ...). ربط الموظف يتم من جهة hr.Employee.user.
    """
    email = models.EmailField(unique=True, db_index=True)

    objects = UserManager()

    # تسجيل الدخول بالبريد
    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        db_table = "base_user"
        ordering = ("email",)

    def __str__(self):
        return self.email

    @property
    def role_names(self) -> frozenset[str]:
        return frozenset(self.groups.values_list("name", flat=True))
