"""Textual screens, modals and widgets."""
