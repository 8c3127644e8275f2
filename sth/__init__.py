"""sth — declarative software provisioning."""

__version__ = "0.1.0"
