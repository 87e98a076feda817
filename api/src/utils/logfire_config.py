from __future__ import annotations

import os
from typing import Optional

import logfire
from dotenv import find_dotenv, load_dotenv

_CONFIGURED: bool = False


def _load_local_env_if_possible() -> None:
    # Load local development variables (does not impact preview/production)
    try:
        load_dotenv(find_dotenv(".env"), override=True)
    except PermissionError:
        # Some sandboxes make `.env` unreadable; real deployments use real env vars.
        pass


def ensure_logfire_configured(
    *,
    mode: str = "prod",
    service_name: str = "fieldtrip-letters",
    environment: Optional[str] = None,
) -> None:
    """
    Configure Logfire exactly once per process.

    - **prod mode**: send traces/logs to Logfire when a token is present
    - **test mode**: do not send to Logfire; show console output

    The FastAPI app, the form client and the test suite may each be the first
    to import logging, but there should only be one Logfire initialization.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    _load_local_env_if_possible()

    env_name = environment or os.getenv("FIELDTRIP_ENVIRONMENT", "local")

    if mode == "test":
        logfire.configure(
            send_to_logfire=False,
            console=logfire.ConsoleOptions(colors="auto"),
        )
    else:
        logfire.configure(
            service_name=service_name,
            environment=env_name,
            send_to_logfire="if-token-present",
        )

    _CONFIGURED = True
