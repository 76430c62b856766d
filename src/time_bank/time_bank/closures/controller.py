from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_caller, hr_required, json_body, ok
from ..common.validators import clamp_limit
from ..core.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ..core.exceptions import ValidationError
from ..container import Container


def _required_date(payload: dict, key: str, label: str):
    # "start_date"/"end_date" in the body, "period_*" accepted as aliases.
    raw = str(payload.get(key) or payload.get(label) or "").strip()
    if not raw:
        raise ValidationError(f"{label} is required")
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{label} must be YYYY-MM-DD")


def register(app: Flask, container: Container) -> None:
    @app.route("/hr/time-bank/closures", methods=["GET"], endpoint="list_time_bank_closures")
    @hr_required
    def list_time_bank_closures():
        items = container.closure_service.list_closures(
            caller=current_caller(),
            limit=clamp_limit(request.args.get("limit"), default=DEFAULT_LIST_LIMIT, maximum=MAX_LIST_LIMIT),
        )
        return ok(items)

    @app.route("/hr/time-bank/closures", methods=["POST"], endpoint="close_time_bank_period")
    @hr_required
    def close_time_bank_period():
        payload = json_body()
        closure = container.closure_service.close(
            caller=current_caller(),
            period_start=_required_date(payload, "start_date", "period_start"),
            period_end=_required_date(payload, "end_date", "period_end"),
            note=payload.get("note"),
        )
        return ok(closure, 201)

    @app.route("/hr/time-bank/closures/<int:closure_id>/reopen", methods=["POST"], endpoint="reopen_time_bank_closure")
    @hr_required
    def reopen_time_bank_closure(closure_id: int):
        payload = json_body()
        closure = container.closure_service.reopen(
            caller=current_caller(),
            closure_id=closure_id,
            note=payload.get("note"),
        )
        return ok(closure)

    @app.route(
        "/hr/time-bank/closures/<int:closure_id>/employees",
        methods=["GET"],
        endpoint="time_bank_closure_employees",
    )
    @hr_required
    def time_bank_closure_employees(closure_id: int):
        items = container.closure_service.items(caller=current_caller(), closure_id=closure_id)
        return ok(items)
