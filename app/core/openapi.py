"""OpenAPI metadata and customization utilities.

Enriches the generated schema with:
- Tags metadata
- An ``x-rate-limit`` extension on each rate-limited operation describing
  its window and request budget

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.rate_limit import CONFIRM, UNSUBSCRIBE, WAITLIST, build_rate_limit_configs

RATE_LIMITED_PATHS = {
    "/api/waitlist": WAITLIST,
    "/api/confirm": CONFIRM,
    "/api/unsubscribe": UNSUBSCRIBE,
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and rate limit docs."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Waitlist",
                "description": "Join, confirm and leave the product waitlist.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        configs = build_rate_limit_configs()
        paths = schema.get("paths", {})
        for path, endpoint in RATE_LIMITED_PATHS.items():
            config = configs[endpoint]
            for method_obj in paths.get(path, {}).values():
                if isinstance(method_obj, dict):
                    method_obj["x-rate-limit"] = {
                        "scope": "client_ip",
                        "window_seconds": config.window_ms // 1000,
                        "max_requests": config.max_requests,
                    }

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
