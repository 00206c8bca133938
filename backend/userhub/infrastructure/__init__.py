"""Infrastructure Layer — storage, HTTP listener, and logging setup.

Invariants:
    - Storage failures are raised as core/errors.py types
"""
