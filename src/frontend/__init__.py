"""Textual panel for browsing recently emitted events."""
