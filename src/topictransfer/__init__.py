"""topictransfer: export and conflict-aware import of hierarchical topic graphs."""

__version__ = "0.4.0"
