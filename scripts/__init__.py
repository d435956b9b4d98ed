"""Operator scripts: CLI host and audit trail."""
