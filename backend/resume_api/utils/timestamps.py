from datetime import datetime, timezone


def utcnow_iso() -> str:
    # Microsecond precision keeps updated_at ordering stable for rapid writes.
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
