from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_date_param
from ..common.http import body_bool, current_caller, hr_required, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/integrations/clockify/config", methods=["GET"], endpoint="get_clockify_config")
    @hr_required
    def get_clockify_config():
        return ok(container.clockify_service.get_config(caller=current_caller()))

    @app.route("/integrations/clockify/config", methods=["POST"], endpoint="save_clockify_config")
    @hr_required
    def save_clockify_config():
        payload = json_body()
        view = container.clockify_service.save_config(
            caller=current_caller(),
            api_key=str(payload.get("api_key") or ""),
            workspace_id=str(payload.get("workspace_id") or ""),
        )
        return ok(view)

    @app.route("/integrations/clockify/status", methods=["GET"], endpoint="clockify_status")
    @hr_required
    def clockify_status():
        return ok(container.clockify_service.status(caller=current_caller()))

    @app.route("/integrations/clockify/sync", methods=["POST"], endpoint="clockify_sync")
    @hr_required
    def clockify_sync():
        payload = json_body()
        override = body_bool(payload, "allow_closed_override") or body_bool(payload, "allow_closed_period")
        summary = container.clockify_service.sync(
            caller=current_caller(),
            start=parse_date_param(str(payload.get("start_date") or ""), "start_date"),
            end=parse_date_param(str(payload.get("end_date") or ""), "end_date"),
            allow_closed_override=override,
        )
        return ok(summary)
