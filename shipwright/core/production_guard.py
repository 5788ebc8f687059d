"""Production configuration guard — enforces hard constraints in production.

Runs once when the orchestrator is constructed and fails hard (raises
``ProductionConfigError``) if any constraint is violated, so a misconfigured
release never starts building.
"""

from __future__ import annotations

import logging

from shipwright.config import ProdConfig

logger = logging.getLogger(__name__)

# ProdConfig fields that MUST be set in production.
PRODUCTION_REQUIRED_SETTINGS: list[str] = [
    "signing_key",
    "github_token",
    "repository",
]


class ProductionConfigError(RuntimeError):
    """Raised when production configuration constraints are violated.

    The process should exit; this must not be caught and ignored.
    """


def enforce_production_constraints(config: ProdConfig) -> None:
    """Validate production-critical configuration.

    Constraints enforced
    --------------------
    1. Debug mode must be disabled.
    2. Signing key, GitHub token and repository must be configured.
    3. The release host must be GitHub (the local host is for dry runs).

    All violations are reported together.
    """
    if not config.is_production:
        return

    violations: list[str] = []

    if config.debug:
        violations.append(
            "debug=True is not allowed in production. Set SHIPWRIGHT_DEBUG=false."
        )

    for key_name in PRODUCTION_REQUIRED_SETTINGS:
        if not getattr(config, key_name, ""):
            violations.append(
                f"Setting '{key_name}' is required in production but not configured. "
                f"Set SHIPWRIGHT_{key_name.upper()}."
            )

    if config.host_backend != "github":
        violations.append(
            f"host_backend={config.host_backend!r} is not allowed in production; use 'github'."
        )

    if violations:
        msg = "Production configuration guard failed.\n" + "\n".join(
            f"  - {v}" for v in violations
        )
        logger.critical(msg)
        raise ProductionConfigError(msg)

    logger.info("Production configuration guard passed.")
