# base/models/__init__.py

# ال Mixins تبقى غير مُصدرة لأنها abstract.
from .user import User

__all__ = [
    "User",
]
