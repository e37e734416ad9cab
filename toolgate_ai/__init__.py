"""Tool-call orchestration and auto-approval core for an AI coding assistant."""

__version__ = "0.1.0"
