"""Free Module: a notes and community board API for university students."""

__version__ = "1.0.0"
