"""Shared base utilities for data models."""
import enum
import secrets


def generate_id(prefix: str) -> str:
    """Generate a unique ID with a prefix."""
    return f"{prefix}_{secrets.token_hex(6)}"


class ObjectStatus(str, enum.Enum):
    """Soft-delete status carried by people and reference data."""
    ACTIVE = "active"
    INACTIVE = "inactive"
