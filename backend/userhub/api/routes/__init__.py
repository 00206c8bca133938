"""Route Modules — one controller per resource.

Invariants:
    - Each controller owns an APIRouter without prefix; the App picks the mount path
"""
