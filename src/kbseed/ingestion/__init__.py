"""Markdown knowledge document parsing and chunking."""
