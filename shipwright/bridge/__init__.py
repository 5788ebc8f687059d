"""Bridges to external primitives — currently Ed25519 release signing."""
