"""Concrete collaborators: HTTP platform adapters, stores and document files."""
