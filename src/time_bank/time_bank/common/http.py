from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any

from flask import Flask, g, jsonify, request

from ..core.caller import Caller
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, DomainError, ValidationError

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-ID"
USER_HEADER = "X-User-ID"
ROLE_HEADER = "X-User-Role"


def _header_int(name: str) -> int:
    raw = (request.headers.get(name) or "").strip()
    if not raw:
        raise AuthenticationError(f"missing {name} header")
    try:
        value = int(raw)
    except ValueError:
        raise AuthenticationError(f"invalid {name} header")
    if value <= 0:
        raise AuthenticationError(f"invalid {name} header")
    return value


def current_caller() -> Caller:
    cached = getattr(g, "caller", None)
    if cached is not None:
        return cached

    tenant_id = _header_int(TENANT_HEADER)
    user_id = _header_int(USER_HEADER)
    raw_role = (request.headers.get(ROLE_HEADER) or "").strip().lower()
    try:
        role = Role(raw_role)
    except ValueError:
        raise AuthenticationError(f"invalid {ROLE_HEADER} header")

    caller = Caller(tenant_id=tenant_id, user_id=user_id, role=role)
    g.caller = caller
    return caller


def caller_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        current_caller()
        return view(*args, **kwargs)

    return wrapper


def hr_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        caller = current_caller()
        if not caller.is_hr:
            raise AuthorizationError("HR role required")
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    if not request.data:
        return {}
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("invalid JSON body")
    return payload


def body_bool(payload: dict, key: str, default: bool = False) -> bool:
    value = payload.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in {"1", "true", "yes", "on"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"0", "false", "no", "off", ""}:
        return False
    raise ValidationError(f"{key} must be a boolean")


def to_jsonable(value: Any) -> Any:
    """Dataclasses, enums and dates into plain JSON types."""
    if is_dataclass(value) and not isinstance(value, type):
        return {k: to_jsonable(v) for k, v in asdict(value).items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": to_jsonable(data)}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        if exc.status >= 500:
            logger.warning("request failed path=%s error=%s: %s", request.path, exc.code, exc)
        return jsonify({"success": False, "error": exc.code, "message": str(exc)}), exc.status
