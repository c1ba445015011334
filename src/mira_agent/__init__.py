"""MIRA agent backend: agent orchestration loop and remote browser sessions."""

__version__ = "0.1.0"
