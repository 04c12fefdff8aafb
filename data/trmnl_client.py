"""
TRMNL e-paper display push via private plugin webhook.
Webhook limits: 2kb body, 12 pushes/hour (429 beyond that).

A failed push never fails the request: the recipe was parsed fine, so every
delivery problem comes back as a warning on a successful result.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from core.display_formatter import format_for_display
from core.payload_compressor import compress_payload
from core.recipe_models import Recipe


class DeliveryOutcome(str, Enum):
    NOT_CONFIGURED = "not_configured"
    RATE_LIMITED = "rate_limited"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    DELIVERED = "delivered"


@dataclass(frozen=True)
class DisplayConfig:
    webhook_url: Optional[str] = None
    timeout: Optional[float] = None

    def __post_init__(self):
        url = (self.webhook_url or "").strip() or None
        object.__setattr__(self, "webhook_url", url)

    @property
    def configured(self) -> bool:
        return self.webhook_url is not None


@dataclass(frozen=True)
class DeliveryResult:
    outcome: DeliveryOutcome
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return True

    @property
    def pushed(self) -> Optional[bool]:
        return True if self.outcome == DeliveryOutcome.DELIVERED else None

    @property
    def warnings(self) -> Optional[list]:
        if self.outcome == DeliveryOutcome.NOT_CONFIGURED:
            return ["TRMNL webhook URL not configured. Recipe parsed successfully but not pushed to display."]
        if self.outcome == DeliveryOutcome.RATE_LIMITED:
            return ["TRMNL rate limit reached (12/hour). Display will update after hourly reset."]
        if self.outcome == DeliveryOutcome.HTTP_ERROR:
            return [f"TRMNL push failed (status {self.status_code}). Recipe parsed successfully."]
        if self.outcome == DeliveryOutcome.NETWORK_ERROR:
            return [f"TRMNL push failed ({self.error}). Recipe parsed successfully."]
        return None

    def to_dict(self) -> dict:
        out = {"success": self.success}
        if self.pushed is not None:
            out["pushed"] = self.pushed
        if self.warnings:
            out["warnings"] = self.warnings
        return out


async def _post(client, url: str, body: bytes, timeout: Optional[float]):
    return await client.post(
        url,
        content=body,
        headers={"Content-Type": "application/json"},
        timeout=timeout,
    )


async def push_to_display(recipe: Recipe, config: Optional[DisplayConfig], client=None) -> DeliveryResult:
    """
    Format, compress and POST a recipe to the TRMNL webhook. One attempt, no retries.
    `client` is any object with an async httpx-style `post`; a fresh
    httpx.AsyncClient is opened when none is given.
    """
    if config is None or not config.configured:
        print("[TRMNL] Webhook URL not configured, skipping push")
        return DeliveryResult(DeliveryOutcome.NOT_CONFIGURED)

    payload = compress_payload(format_for_display(recipe))
    measurement = payload.measure()
    body = measurement.serialized.encode("utf-8")
    print(f"[TRMNL] Pushing {measurement.bytes} bytes (steps={payload.step_count}, truncated={payload.truncated})")

    try:
        if client is None:
            async with httpx.AsyncClient() as http:
                resp = await _post(http, config.webhook_url, body, config.timeout)
        else:
            resp = await _post(client, config.webhook_url, body, config.timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        message = str(e) or type(e).__name__
        print(f"[TRMNL] Push failed: {message}")
        return DeliveryResult(DeliveryOutcome.NETWORK_ERROR, error=message)

    if resp.status_code == 429:
        print("[TRMNL] Rate limit hit")
        return DeliveryResult(DeliveryOutcome.RATE_LIMITED, status_code=429)
    if not 200 <= resp.status_code < 300:
        print(f"[TRMNL] Push error {resp.status_code}")
        return DeliveryResult(DeliveryOutcome.HTTP_ERROR, status_code=resp.status_code)

    print("[TRMNL] Push delivered")
    return DeliveryResult(DeliveryOutcome.DELIVERED, status_code=resp.status_code)


push = push_to_display
