"""Service Layer — logger and config facades consumed by the App and its collaborators."""
