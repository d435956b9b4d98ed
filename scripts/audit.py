"""Audit logging utilities for app role assignment lifecycle events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import os
import sys
from pathlib import Path
from typing import Any, Literal

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "app-role-assignments.jsonl"


def _get_signing_key() -> bytes:
    """Get the audit signing key (file named by AUDIT_LOG_SIGNING_KEY_FILE, then environment)."""
    key_file = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if key_file:
        path = Path(key_file)
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                pass
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


EventType = Literal[
    "assignment_create",
    "assignment_delete",
    "assignment_import",
    "assignment_drift",
]


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    # Canonical JSON representation for signing
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_assignment_event(
    event_type: EventType,
    resource_id: str,
    *,
    operator: str = "system",
    tenant_id: str = "",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append an assignment event to the audit trail with timestamp and signature.

    Args:
        event_type: Lifecycle operation (assignment_create, assignment_delete, ...)
        resource_id: Composite assignment identifier, or the resource name when none exists yet
        operator: Who performed the operation
        tenant_id: Entra ID tenant where the operation ran
        details: Additional context (app role, principal, error)
        success: Whether the operation succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "tenant_id": tenant_id,
        "resource_id": resource_id,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_assignment_event(event_type: EventType, resource_id: str, **kwargs: Any) -> bool:
    """Log an assignment event, reporting failures on stderr instead of raising.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_assignment_event(event_type, resource_id, **kwargs)
        return True
    except OSError as e:
        print(f"[audit] Warning: Failed to log {event_type} event for {resource_id}: {e}", file=sys.stderr)
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event)
                if computed_sig and hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1
            except (json.JSONDecodeError, AttributeError):
                continue

    return total, valid


if __name__ == "__main__":
    total, valid = verify_audit_log()
    print(f"Audit log: {valid}/{total} events with valid signatures")
    sys.exit(0 if total == valid else 1)
