"""Outbound exports to external collaborators."""
