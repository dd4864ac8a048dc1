"""Git hooks manager library: configuration loading and merging, skip rules and repository helpers."""

__version__ = "0.1.0"

__all__ = ["available", "config", "entries", "gitexec", "lfs", "repository", "skip"]