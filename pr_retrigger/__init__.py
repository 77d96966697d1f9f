"""Re-trigger CI workflow runs of open pull requests after a base branch moves."""

__version__ = "0.1.0"
