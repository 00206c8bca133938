"""API Layer — middleware, exception filter, and route controllers.

Invariants:
    - Routes never touch the FastAPI app directly; the App mounts their routers
    - All error responses share the {"error": {...}} envelope
"""
