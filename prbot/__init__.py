"""Pull request review automation: dispatch, filtering, reviewing and rate limiting."""

__version__ = "0.1.0"