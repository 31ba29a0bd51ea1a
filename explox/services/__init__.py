"""Collaborator services used by the generation pipeline."""
