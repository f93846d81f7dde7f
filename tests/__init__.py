"""
Converge Test Suite

This directory contains tests for the Converge system:
- Unit tests for values, resources, probes and collaborators
- Engine tests for ordering, notifications, fail-fast and idempotence
- CLI tests driving the typer app against in-memory collaborators
"""
