"""Content Map: keeps a project's content graph in sync with article hyperlinks."""

__version__ = "0.1.0"
