"""Status monitor that gathers system information into a single status line."""

__version__ = "1.1"