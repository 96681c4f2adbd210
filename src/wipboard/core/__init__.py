"""Core domain, store adapters and board engine."""
