"""Find out which subjects have RBAC permissions to perform an action."""

__version__ = "0.1.0"
