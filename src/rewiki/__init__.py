"""Rewiki: concise encyclopedia articles written and revised by a hosted language model."""

__all__ = ["config", "models", "generator", "revision", "session"]
