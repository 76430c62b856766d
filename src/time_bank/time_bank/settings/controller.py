from __future__ import annotations

from flask import Flask

from ..common.http import body_bool, current_caller, hr_required, json_body, ok
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/hr/time-bank/settings", methods=["GET"], endpoint="get_time_bank_settings")
    @hr_required
    def get_time_bank_settings():
        return ok(container.settings_service.get(caller=current_caller()))

    @app.route("/hr/time-bank/settings", methods=["POST"], endpoint="update_time_bank_settings")
    @hr_required
    def update_time_bank_settings():
        payload = json_body()
        minutes = payload.get("target_daily_minutes")
        if minutes is not None and (isinstance(minutes, bool) or not isinstance(minutes, int)):
            raise ValidationError("target_daily_minutes must be an integer")

        include_saturday = None
        if "include_saturday" in payload and payload["include_saturday"] is not None:
            include_saturday = body_bool(payload, "include_saturday")

        settings = container.settings_service.update(
            caller=current_caller(),
            target_daily_minutes=minutes,
            include_saturday=include_saturday,
        )
        return ok(settings)
