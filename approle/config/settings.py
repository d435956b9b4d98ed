"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.debug("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.debug("Loaded %s from environment (fallback)", env_var)
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Entra ID application used to call Graph
    tenant_id: str
    client_id: str
    client_secret: str = ""

    # Graph endpoints
    graph_url: str = "https://graph.microsoft.com"
    graph_api_version: str = "v1.0"
    authority_url: str = "https://login.microsoftonline.com"
    request_timeout: float = 30

    # Operation timeouts (seconds)
    create_timeout: float = 300
    read_timeout: float = 300
    delete_timeout: float = 300

    # CLI state store
    state_file: str = ".runtime/state/app_role_assignments.json"

    log_level: str = "INFO"

    @property
    def client_secret_resolved(self) -> str:
        """Get the Graph application client secret.

        Priority:
        1. Configured value in client_secret
        2. Docker secrets: /run/secrets/azure_client_secret
        3. Environment variable: AZURE_CLIENT_SECRET

        Raises:
            ValueError: If secret not found
        """
        if self.client_secret:
            return self.client_secret

        secret = _load_secret_from_file("azure_client_secret", "AZURE_CLIENT_SECRET")
        if secret:
            return secret

        raise ValueError(
            "AZURE_CLIENT_SECRET not found. "
            "Provide it via Docker secrets (/run/secrets/azure_client_secret) or environment variable."
        )


def _require(var_name: str) -> str:
    value = os.environ.get(var_name, "").strip()
    if not value:
        raise RuntimeError(f"Environment variable {var_name} is required.")
    return value


def _float_env(var_name: str, default: float) -> float:
    raw = os.environ.get(var_name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be a number, got {raw!r}")
    if value <= 0:
        raise RuntimeError(f"Environment variable {var_name} must be positive, got {raw!r}")
    return value


def load_settings(require_credentials: bool = True) -> AppConfig:
    """Load application settings from the environment.

    The client secret is not read here; ``AppConfig.client_secret_resolved``
    looks it up in /run/secrets or the environment when a token is needed.

    Args:
        require_credentials: Require AZURE_TENANT_ID and AZURE_CLIENT_ID. Callers
            holding a pre-obtained access token pass False.

    Raises:
        RuntimeError: If a required variable is missing or a timeout is invalid
    """
    if require_credentials:
        tenant_id = _require("AZURE_TENANT_ID")
        client_id = _require("AZURE_CLIENT_ID")
    else:
        tenant_id = os.environ.get("AZURE_TENANT_ID", "").strip()
        client_id = os.environ.get("AZURE_CLIENT_ID", "").strip()

    config = AppConfig(
        tenant_id=tenant_id,
        client_id=client_id,
        graph_url=os.environ.get("GRAPH_URL", "https://graph.microsoft.com").rstrip("/"),
        graph_api_version=os.environ.get("GRAPH_API_VERSION", "v1.0"),
        authority_url=os.environ.get("AZURE_AUTHORITY_URL", "https://login.microsoftonline.com").rstrip("/"),
        request_timeout=_float_env("GRAPH_REQUEST_TIMEOUT", 30),
        create_timeout=_float_env("APPROLE_CREATE_TIMEOUT", 300),
        read_timeout=_float_env("APPROLE_READ_TIMEOUT", 300),
        delete_timeout=_float_env("APPROLE_DELETE_TIMEOUT", 300),
        state_file=os.environ.get("APPROLE_STATE_FILE", ".runtime/state/app_role_assignments.json"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )

    logger.info("Settings loaded; tenant=%s; client_id=%s; graph=%s/%s",
                tenant_id, client_id, config.graph_url, config.graph_api_version)
    return config
