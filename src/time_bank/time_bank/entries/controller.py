from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_date_param, parse_timestamp
from ..common.http import caller_required, current_caller, hr_required, json_body, ok
from ..common.validators import clamp_limit, require_positive_id
from ..core.constants import DEFAULT_ENTRIES_LIMIT, DEFAULT_LIST_LIMIT, MAX_ENTRIES_LIMIT, MAX_LIST_LIMIT
from ..container import Container


def _clock_args(payload: dict) -> dict:
    employee_id = payload.get("employee_id")
    raw_ts = payload.get("timestamp")
    return {
        "employee_id": require_positive_id(employee_id, "employee_id") if employee_id not in (None, "") else None,
        "at": parse_timestamp(str(raw_ts)) if raw_ts not in (None, "") else None,
        "note": payload.get("note"),
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/time-entries/clock-in", methods=["POST"], endpoint="clock_in")
    @caller_required
    def clock_in():
        entry = container.entry_service.clock_in(caller=current_caller(), **_clock_args(json_body()))
        return ok(entry, 201)

    @app.route("/time-entries/clock-out", methods=["POST"], endpoint="clock_out")
    @caller_required
    def clock_out():
        entry = container.entry_service.clock_out(caller=current_caller(), **_clock_args(json_body()))
        return ok(entry)

    @app.route("/time-entries", methods=["GET"], endpoint="list_time_entries")
    @hr_required
    def list_time_entries():
        raw_employee = (request.args.get("employee_id") or "").strip()
        entries = container.entry_service.list_entries(
            caller=current_caller(),
            employee_id=require_positive_id(raw_employee, "employee_id") if raw_employee else None,
            start=parse_date_param(request.args.get("from"), "from"),
            end=parse_date_param(request.args.get("to"), "to"),
            limit=clamp_limit(request.args.get("limit"), default=DEFAULT_ENTRIES_LIMIT, maximum=MAX_ENTRIES_LIMIT),
        )
        return ok(entries)

    @app.route("/time-entries/me", methods=["GET"], endpoint="my_time_entries")
    @caller_required
    def my_time_entries():
        data = container.entry_service.my_entries(
            caller=current_caller(),
            limit=clamp_limit(request.args.get("limit"), default=DEFAULT_LIST_LIMIT, maximum=MAX_LIST_LIMIT),
        )
        return ok(data)
