from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_date_param
from ..common.http import current_caller, hr_required, ok
from ..common.validators import require_positive_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/hr/time-bank/summary", methods=["GET"], endpoint="time_bank_summary")
    @hr_required
    def time_bank_summary():
        raw_employee = (request.args.get("employee_id") or "").strip()
        summary = container.balance_service.summary(
            caller=current_caller(),
            start=parse_date_param(request.args.get("start_date"), "start_date"),
            end=parse_date_param(request.args.get("end_date"), "end_date"),
            employee_id=require_positive_id(raw_employee, "employee_id") if raw_employee else None,
        )
        return ok(summary)
