"""SQLite persistence for projects and tasks."""
