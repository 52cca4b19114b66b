"""TrackSync — Kie.ai music task tracking and asset download service."""

__version__ = "0.1.0"
