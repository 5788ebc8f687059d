"""Shipwright: release build-and-publish orchestrator for desktop clients.

Builds every platform target of a published release concurrently, uploads
the signed artifacts to the release host, publishes the self-update
manifest once every required target succeeded, and announces the release.
"""

__version__ = "0.4.0"
__description__ = "Release build-and-publish orchestrator for desktop applications"

from shipwright.core.orchestrator import ReleaseOrchestrator

__all__ = ["ReleaseOrchestrator", "__version__"]
