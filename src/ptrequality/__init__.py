"""ptrequality: flags comparisons against the address of freshly allocated values."""

__version__ = "0.1.0"
