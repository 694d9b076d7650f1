"""Shared libraries: configuration, LLM access, settings, text extraction."""
