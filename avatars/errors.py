"""
avatars.errors
--------------

A small, consistent error system for the sale engine.

Design goals
------------
- One root `AvatarError` with machine-friendly `code` and optional `data`.
- One concrete subclass per rejection kind, so callers can `except` the kind
  they care about and tests can assert on it.
- Safe JSON representation (`to_dict`) suitable for logs and API bridges.

Every error aborts the request that raised it; nothing here is retried
automatically.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class SaleErrorCode(str, Enum):
    PHASE_NOT_OPEN = "SALE/PHASE_NOT_OPEN"
    NOT_ALLOWLISTED = "SALE/NOT_ALLOWLISTED"
    CAP_EXCEEDED = "SALE/CAP_EXCEEDED"
    INSUFFICIENT_PAYMENT = "SALE/INSUFFICIENT_PAYMENT"
    INVALID_AMOUNT = "SALE/INVALID_AMOUNT"
    UPSTREAM_FAILURE = "SALE/UPSTREAM_FAILURE"
    UNAUTHORIZED = "SALE/UNAUTHORIZED"
    NOT_FOUND = "SALE/NOT_FOUND"
    REENTRANT_CALL = "SALE/REENTRANT_CALL"
    CONFIG = "SALE/CONFIG"


@dataclass(eq=False)
class AvatarError(Exception):
    """
    Root error for the avatars package.

    Attributes
    ----------
    code: str
        Machine-stable error code (see SaleErrorCode).
    message: str
        Human hint suitable for logs.
    data: dict
        Optional machine data (ids, amounts, caps). JSON-serializable.
    cause: Optional[BaseException]
        Wrapped original exception; not included in equality comparison.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        # keep the plain string value, not the Enum member
        self.code = str(getattr(self.code, "value", self.code))
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """JSON-safe shape suitable for logs/API bridges."""
        out: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "data": _jsonmap(self.data),
        }
        if include_cause and self.cause is not None:
            out["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return out

    def __str__(self) -> str:
        parts = [f"{self.code}: {self.message}"]
        if self.data:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.data.items())
            parts.append(f"[{preview}]")
        return " ".join(parts)


class PhaseNotOpen(AvatarError):
    def __init__(self, message="sale phase not open", **data: Any) -> None:
        super().__init__(
            code=SaleErrorCode.PHASE_NOT_OPEN, message=message, data=_jsonmap(data)
        )


class NotAllowlisted(AvatarError):
    def __init__(self, message="caller not on allowlist", **data: Any) -> None:
        super().__init__(
            code=SaleErrorCode.NOT_ALLOWLISTED, message=message, data=_jsonmap(data)
        )


class CapExceeded(AvatarError):
    def __init__(self, cap: str, limit: int, requested: int, current: int) -> None:
        super().__init__(
            code=SaleErrorCode.CAP_EXCEEDED,
            message=f"{cap} cap exceeded",
            data={"cap": cap, "limit": limit, "requested": requested, "current": current},
        )


class InsufficientPayment(AvatarError):
    def __init__(self, required: int, paid: int) -> None:
        super().__init__(
            code=SaleErrorCode.INSUFFICIENT_PAYMENT,
            message="insufficient payment",
            data={"required": required, "paid": paid},
        )


class InvalidAmount(AvatarError):
    def __init__(self, amount: Any) -> None:
        super().__init__(
            code=SaleErrorCode.INVALID_AMOUNT,
            message="amount must be a positive integer",
            data={"amount": _coerce_json(amount)},
        )


class UpstreamFailure(AvatarError):
    def __init__(self, collaborator: str, message="collaborator call failed", **data: Any) -> None:
        super().__init__(
            code=SaleErrorCode.UPSTREAM_FAILURE,
            message=message,
            data=_jsonmap({"collaborator": collaborator, **data}),
        )


class Unauthorized(AvatarError):
    def __init__(self, role: str, caller: Any = None) -> None:
        super().__init__(
            code=SaleErrorCode.UNAUTHORIZED,
            message=f"caller is not the {role}",
            data=_jsonmap({"role": role, "caller": caller}),
        )


class NotFound(AvatarError):
    def __init__(self, avatar_id: int) -> None:
        super().__init__(
            code=SaleErrorCode.NOT_FOUND,
            message="avatar not issued",
            data={"id": avatar_id},
        )


class ReentrantCall(AvatarError):
    def __init__(self, operation: str) -> None:
        super().__init__(
            code=SaleErrorCode.REENTRANT_CALL,
            message="request already in progress",
            data={"operation": operation},
        )


class ConfigError(AvatarError):
    def __init__(self, message="invalid configuration", **data: Any) -> None:
        super().__init__(code=SaleErrorCode.CONFIG, message=message, data=_jsonmap(data))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def upstream(collaborator: str, exc: BaseException, **ctx: Any) -> UpstreamFailure:
    """Wrap a collaborator exception, keeping the original as `cause`."""
    err = UpstreamFailure(collaborator, message=f"{collaborator} failed: {exc}", **ctx)
    err.cause = exc
    return err


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    # Keep JSON primitives; hex-encode bytes; stringify the rest.
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    try:
        return str(v)
    except Exception:
        return "<unprintable>"


def _preview(v: Any, limit: int = 96) -> str:
    s = str(_coerce_json(v))
    return s if len(s) <= limit else s[:limit] + "…"


__all__ = [
    "SaleErrorCode",
    "AvatarError",
    "PhaseNotOpen",
    "NotAllowlisted",
    "CapExceeded",
    "InsufficientPayment",
    "InvalidAmount",
    "UpstreamFailure",
    "Unauthorized",
    "NotFound",
    "ReentrantCall",
    "ConfigError",
    "upstream",
]
