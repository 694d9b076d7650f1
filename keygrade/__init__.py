"""Grade student submissions against an answer key with a hosted language model."""

__version__ = "0.1.0"
