"""SSH probing and comparison utilities (ssh-ping, ssh-diff)."""

__version__ = "0.3.0"
