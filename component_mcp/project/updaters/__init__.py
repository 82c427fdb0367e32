"""Updaters applied to a project, one concern per module."""
