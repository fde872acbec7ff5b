"""Agentic tool-calling pipeline for a desktop code editor's AI assistant."""

__version__ = "0.1.0"
