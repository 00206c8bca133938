"""UserHub — HTTP user service with explicit startup/shutdown sequencing.

Invariants:
    - Package root holds only the version string (no import side-effects)
"""

__version__ = "1.0.0"
