from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class LoyaltySnapshot:
    scans: Dict[str, int]
    redemptions: Dict[str, int]
    otp: Dict[str, int]
    cards: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "scans": dict(self.scans),
            "redemptions": dict(self.redemptions),
            "otp": dict(self.otp),
            "cards": dict(self.cards),
        }


class LoyaltyObservabilityStore:
    """Collect scan, redemption and identity telemetry for dashboards and alerting."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._scans: Dict[str, int] = defaultdict(int)
        self._redemptions: Dict[str, int] = defaultdict(int)
        self._otp: Dict[str, int] = defaultdict(int)
        self._cards: Dict[str, int] = defaultdict(int)

    def record_scan(self, outcome: str, *, points: int = 0) -> None:
        with self._lock:
            self._scans[outcome] += 1
            if points:
                self._scans["points_awarded"] += points

    def record_redemption(self, outcome: str, *, points: int = 0) -> None:
        with self._lock:
            self._redemptions[outcome] += 1
            if points:
                self._redemptions["points_spent"] += points

    def record_otp_event(self, event: str) -> None:
        with self._lock:
            self._otp[event] += 1

    def record_card_event(self, event: str) -> None:
        with self._lock:
            self._cards[event] += 1

    def snapshot(self) -> LoyaltySnapshot:
        with self._lock:
            return LoyaltySnapshot(
                scans=dict(self._scans),
                redemptions=dict(self._redemptions),
                otp=dict(self._otp),
                cards=dict(self._cards),
            )

    def reset(self) -> None:
        with self._lock:
            self._scans.clear()
            self._redemptions.clear()
            self._otp.clear()
            self._cards.clear()


_STORE = LoyaltyObservabilityStore()


def get_loyalty_store() -> LoyaltyObservabilityStore:
    return _STORE


__all__ = ["get_loyalty_store", "LoyaltyObservabilityStore", "LoyaltySnapshot"]
