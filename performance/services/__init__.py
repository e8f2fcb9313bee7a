# performance/services/__init__.py
"""
Appraisal workflow services.

Each module exposes keyword-friendly functions taking an `Actor` first.
All writes run inside `transaction.atomic` and raise from
`performance.exceptions` on failure.
"""
