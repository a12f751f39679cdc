"""Kudos issue importer: loads open GitHub issues for a project into PostgreSQL."""
