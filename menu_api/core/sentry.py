from __future__ import annotations

from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from menu_api.core.config import settings


def before_send(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """Tag Sentry events with the request id and drop submitted bodies."""
    request_data = event.get("request")
    if isinstance(request_data, dict):
        headers = request_data.get("headers") or {}
        request_id = headers.get("x-request-id") or headers.get("X-Request-Id")
        if request_id:
            event.setdefault("tags", {})["request_id"] = request_id
        request_data.pop("data", None)

    # request_body log lines become breadcrumbs with the raw body in the message
    if "breadcrumbs" in event:
        breadcrumbs = event["breadcrumbs"]
        breadcrumbs["values"] = [
            breadcrumb
            for breadcrumb in breadcrumbs.get("values", [])
            if "request_body" not in (breadcrumb.get("message") or "")
        ]

    return event


def sentry_options() -> dict[str, Any]:
    return {
        "dsn": settings.sentry_dsn,
        "environment": settings.sentry_environment or settings.environment,
        "integrations": [
            FastApiIntegration(transaction_style="endpoint"),
            # breadcrumbs only; unhandled faults are captured explicitly
            LoggingIntegration(level=None, event_level=None),
        ],
        "traces_sample_rate": 0.1,
        "before_send": before_send,
        "send_default_pii": False,
        "max_breadcrumbs": 50,
    }


def init_sentry() -> bool:
    """Start Sentry when a DSN is configured; returns whether it did."""
    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(**sentry_options())
    sentry_sdk.set_tag("service", settings.app_name)
    return True
