# cplace.py
# Minimal POST-only client for the cplace REST API used by the meeting tools.

import base64
from typing import Any

import httpx
from pydantic import BaseModel

from plan_runner.config import Settings, get_settings


class CplaceResponse(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
    status: int | None = None


def _headers(settings: Settings) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if settings.cplace_api_token:
        headers["x-api-key"] = settings.cplace_api_token
    if settings.cplace_user_name and settings.cplace_pass:
        credentials = f"{settings.cplace_user_name}:{settings.cplace_pass}".encode("utf-8")
        headers["Authorization"] = "Basic " + base64.b64encode(credentials).decode("ascii")
    return headers


async def call_cplace_api(
    endpoint: str,
    body: dict[str, Any] | None = None,
    settings: Settings | None = None,
) -> CplaceResponse:
    """
    POST `body` to `endpoint` and wrap the outcome.

    Never raises: transport errors and non-2xx statuses come back as
    CplaceResponse(success=False, ...).
    """
    settings = settings or get_settings()
    if not settings.cplace_api_base_url:
        return CplaceResponse(success=False, error="Missing CPLACE_API_BASE_URL.")

    url = f"{settings.cplace_api_base_url.rstrip('/')}{endpoint}"
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.post(url, json=body or {}, headers=_headers(settings))
    except httpx.HTTPError as exc:
        return CplaceResponse(success=False, error=str(exc) or "Unknown error")

    if "application/json" in response.headers.get("content-type", ""):
        try:
            data = response.json()
        except ValueError:
            data = response.text
    else:
        data = response.text

    if not response.is_success:
        return CplaceResponse(
            success=False,
            error=f"Request failed with status {response.status_code}",
            status=response.status_code,
            data=data,
        )
    return CplaceResponse(success=True, data=data, status=response.status_code)
