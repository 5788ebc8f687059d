"""Shipwright CLI — Typer-based command-line interface.

Provides the ``shipwright`` command with subcommands for running a release,
listing targets, generating a signing key and dry-running the manifest.

All output uses Rich for formatted terminal display.
"""
