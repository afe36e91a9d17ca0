"""Workflow orchestrators behind the CLI commands."""
