"""repo-radar: GitHub repository analytics."""

__version__ = "0.1.0"
