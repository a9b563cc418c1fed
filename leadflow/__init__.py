"""Lead-list outreach automation."""

__version__ = "1.0.0"
