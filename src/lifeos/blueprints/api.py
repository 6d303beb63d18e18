"""Helpers shared by the JSON blueprints: auth, parsing and the response envelope."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, time
from functools import wraps
from typing import Any, Callable, Optional

from flask import jsonify, request
from pydantic import BaseModel

from ..context import AppContext
from ..errors import HTTP_STATUS_BY_KIND, LifeOSError, Result, Unauthenticated, ValidationError, map_exception
from ..extensions import get_base_context
from ..services.auth import authenticate


def to_json(value: Any) -> Any:
    """Convert entities, dataclasses and dates into JSON-ready values."""

    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_json(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {to_json(key) if not isinstance(key, str) else key: to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json(item) for item in value]
    return str(value)


def respond(result: Result[Any], success_status: int = 200):
    """Render a ``{data, error}`` envelope with the matching HTTP status."""

    if result.ok:
        return jsonify({"data": to_json(result.data), "error": None}), success_status
    error = result.error
    status = HTTP_STATUS_BY_KIND.get(error.kind, 500)  # type: ignore[union-attr]
    response = jsonify({"data": None, "error": error.to_dict()})  # type: ignore[union-attr]
    response.status_code = status
    if status == 401:
        response.headers["WWW-Authenticate"] = 'Basic realm="LifeOS"'
    return response


def authenticated_context() -> AppContext:
    """Bind the app context to the user named by HTTP Basic credentials."""

    auth = request.authorization
    if auth is None or auth.type != "basic":
        raise Unauthenticated("Missing credentials")
    base = get_base_context()
    user = authenticate(
        username=auth.username or "",
        password=auth.password or "",
        session_factory=base.session_factory,
    )
    if user is None:
        raise Unauthenticated("Invalid credentials")
    return base.for_user(user)


def api_view(success_status: int = 200) -> Callable:
    """Authenticate, call the view with the bound context and render its Result."""

    def decorator(view: Callable[..., Result[Any]]) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                ctx = authenticated_context()
                result = view(ctx, *args, **kwargs)
            except LifeOSError as exc:
                result = Result.failure(exc)
            except Exception as exc:  # noqa: BLE001 - rendered as an envelope like every other failure
                result = Result.failure(map_exception(exc))
            return respond(result, success_status)

        return wrapper

    return decorator


def json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def parse_date(raw: Optional[str], *, field: str = "date") -> date:
    if not raw:
        raise ValidationError(f"{field} is required")
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)") from exc


def optional_date(raw: Optional[str], *, field: str = "date") -> Optional[date]:
    return parse_date(raw, field=field) if raw else None


def optional_int(raw: Optional[str], *, field: str) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an integer") from exc


def int_field(payload: dict[str, Any], name: str, *, default: Optional[int] = None) -> int:
    """Read an integer from a JSON body, rejecting booleans and missing values."""

    value = payload.get(name, default)
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be an integer") from exc
