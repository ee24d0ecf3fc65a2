"""uca — update the coding-agent CLIs installed on this machine."""

__version__ = "0.1.0"
