"""Exceptions raised while re-triggering pull request workflow runs."""


class RetriggerError(Exception):
    """Base exception for re-trigger failures."""


class InvalidParametersError(RetriggerError):
    """Raised when a dispatch is requested without owner, repo or ref."""
