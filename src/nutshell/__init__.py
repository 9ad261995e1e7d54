"""Nutshell: summarize text and web pages, and keep the summaries you like."""

__version__ = "0.1.0"
