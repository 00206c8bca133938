"""Core Layer — domain types, error hierarchy, and collaborator protocols.

Invariants:
    - core never imports from api/ or infrastructure/
"""
