from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_date_param, parse_iso_date
from ..common.http import body_bool, current_caller, hr_required, json_body, ok
from ..common.validators import clamp_limit, require_positive_id
from ..core.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ..core.enums import AdjustmentAction, AdjustmentStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .service import resolve_delta


def _parse_status(raw: str):
    value = (raw or "").strip().lower()
    if not value:
        return None
    try:
        return AdjustmentStatus(value)
    except ValueError:
        raise ValidationError("adjustment status must be pending|approved|rejected")


def register(app: Flask, container: Container) -> None:
    @app.route("/hr/time-bank/adjustments", methods=["GET"], endpoint="list_time_bank_adjustments")
    @hr_required
    def list_time_bank_adjustments():
        raw_employee = (request.args.get("employee_id") or "").strip()
        items = container.adjustment_service.list_adjustments(
            caller=current_caller(),
            status=_parse_status(request.args.get("status", "")),
            employee_id=require_positive_id(raw_employee, "employee_id") if raw_employee else None,
            start=parse_date_param(request.args.get("start_date"), "start_date"),
            end=parse_date_param(request.args.get("end_date"), "end_date"),
            limit=clamp_limit(request.args.get("limit"), default=DEFAULT_LIST_LIMIT, maximum=MAX_LIST_LIMIT),
        )
        return ok(items)

    @app.route("/hr/time-bank/adjustments", methods=["POST"], endpoint="create_time_bank_adjustment")
    @hr_required
    def create_time_bank_adjustment():
        payload = json_body()
        raw_date = str(payload.get("effective_date") or "").strip()
        try:
            effective_date = parse_iso_date(raw_date)
        except ValueError:
            raise ValidationError("effective_date must be YYYY-MM-DD")

        created = container.adjustment_service.propose(
            caller=current_caller(),
            employee_id=require_positive_id(payload.get("employee_id"), "employee id"),
            effective_date=effective_date,
            seconds_delta=resolve_delta(payload.get("seconds_delta"), payload.get("minutes_delta")),
            reason=payload.get("reason"),
        )
        return ok(created, 201)

    def _decide(adjustment_id: int, action: AdjustmentAction):
        payload = json_body()
        decided = container.adjustment_service.decide(
            caller=current_caller(),
            adjustment_id=adjustment_id,
            action=action,
            review_note=payload.get("note"),
            allow_closed_override=body_bool(payload, "allow_closed_override"),
        )
        return ok(decided)

    @app.route(
        "/hr/time-bank/adjustments/<int:adjustment_id>/approve",
        methods=["POST"],
        endpoint="approve_time_bank_adjustment",
    )
    @hr_required
    def approve_time_bank_adjustment(adjustment_id: int):
        return _decide(adjustment_id, AdjustmentAction.APPROVE)

    @app.route(
        "/hr/time-bank/adjustments/<int:adjustment_id>/reject",
        methods=["POST"],
        endpoint="reject_time_bank_adjustment",
    )
    @hr_required
    def reject_time_bank_adjustment(adjustment_id: int):
        return _decide(adjustment_id, AdjustmentAction.REJECT)
