"""Per-cycle reporting models."""

from dataclasses import dataclass, field


@dataclass
class CycleSummary:
    cycle_id: str
    hourly_ok: bool = False
    daily_ok: bool = False
    sensors_ok: bool = False
    token_available: bool = False
    readings_produced: int = 0
    readings_persisted: int = 0
    readings_dropped: int = 0
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when at least one source produced data this cycle."""
        return self.hourly_ok or self.daily_ok or self.sensors_ok

    def to_dict(self) -> dict:
        return {
            "cycle_id": self.cycle_id,
            "ok": self.ok,
            "hourly_ok": self.hourly_ok,
            "daily_ok": self.daily_ok,
            "sensors_ok": self.sensors_ok,
            "token_available": self.token_available,
            "readings_produced": self.readings_produced,
            "readings_persisted": self.readings_persisted,
            "readings_dropped": self.readings_dropped,
            "duration_seconds": round(self.duration_seconds, 3),
            "errors": list(self.errors),
        }
