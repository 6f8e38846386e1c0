"""forksync: keep forks in step with their upstream via pull requests."""

__version__ = "1.0.0"
