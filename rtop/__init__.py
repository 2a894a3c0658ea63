"""rtop: terminal system dashboard with an embedded shell and log viewers."""

__version__ = "0.3.0"
