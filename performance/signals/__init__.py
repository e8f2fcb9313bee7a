# performance/signals/__init__.py
from . import cache, ownership, roles  # noqa: F401
