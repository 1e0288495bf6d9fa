"""Loyalty observability snapshot and Prometheus export."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from legends_api.api.dependencies.security import require_admin_api_key
from legends_api.observability.loyalty import get_loyalty_store


router = APIRouter(
    prefix="/observability",
    tags=["Observability"],
    dependencies=[Depends(require_admin_api_key)],
)

_METRIC_FAMILIES = (
    ("scans", "legends_loyalty_scans_total", "Scan attempts by outcome"),
    ("redemptions", "legends_loyalty_redemptions_total", "Redemption attempts by outcome"),
    ("otp", "legends_loyalty_otp_events_total", "OTP lifecycle events"),
    ("cards", "legends_loyalty_card_events_total", "Member card provisioning events"),
)

_AMOUNT_KEYS = {
    "points_awarded": ("legends_loyalty_points_awarded_total", "Points credited by scans"),
    "points_spent": ("legends_loyalty_points_spent_total", "Points spent on redemptions"),
}


def _format_metric(name: str, description: str, samples: list[tuple[dict[str, str], int]]) -> list[str]:
    lines = [f"# HELP {name} {description}", f"# TYPE {name} counter"]
    for labels, value in samples:
        label_fragment = ""
        if labels:
            formatted = ",".join(f'{key}="{val}"' for key, val in sorted(labels.items()))
            label_fragment = f"{{{formatted}}}"
        lines.append(f"{name}{label_fragment} {value}")
    return lines


@router.get("/loyalty", summary="Loyalty counters snapshot")
async def get_loyalty_snapshot() -> dict[str, object]:
    return get_loyalty_store().snapshot().as_dict()


@router.get(
    "/metrics",
    summary="Prometheus-formatted loyalty metrics",
    response_class=PlainTextResponse,
)
async def get_prometheus_metrics() -> PlainTextResponse:
    snapshot = get_loyalty_store().snapshot().as_dict()
    lines: list[str] = []
    for family, name, description in _METRIC_FAMILIES:
        counters = snapshot[family]
        samples = [
            ({"outcome": outcome}, value)
            for outcome, value in sorted(counters.items())
            if outcome not in _AMOUNT_KEYS
        ]
        lines.extend(_format_metric(name, description, samples))
        for key, (amount_name, amount_description) in _AMOUNT_KEYS.items():
            if key in counters:
                lines.extend(_format_metric(amount_name, amount_description, [({}, counters[key])]))
    return PlainTextResponse("\n".join(lines) + "\n")
