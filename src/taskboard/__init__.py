"""taskboard – task lifecycle engine (stages, permissions, optimistic board sync)."""

__version__ = "0.1.0"
