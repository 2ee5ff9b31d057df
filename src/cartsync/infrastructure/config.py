"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

from cartsync.application.cart_engine import RELOAD_DELAY_SECONDS
from cartsync.domain.exceptions import ValidationError
from cartsync.domain.service.branch_selector import (
    MAX_BAD_CONDITION_MIN,
    MAX_DELIVERY_MIN,
    DeliveryRules,
)
from cartsync.domain.service.geo import AVERAGE_SPEED_KMH

# Default data directory sits at the project root in editable installs.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

_TRUE = {"1", "true", "yes", "on"}


class ConfigurationError(Exception):
    """An environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    user_id: str | None = None
    delivery: DeliveryRules = field(default_factory=DeliveryRules)
    reload_delay: float = RELOAD_DELAY_SECONDS
    log_level: str = "WARNING"

    @property
    def store_file(self) -> Path:
        return self.data_dir / "remote_store.json"

    @property
    def location_file(self) -> Path:
        return self.data_dir / "selected_location.json"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        if environ is None:
            # A .env file in the working directory fills in unset variables.
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ if environ is None else environ
        try:
            delivery = DeliveryRules(
                average_speed_kmh=_float(env, "CARTSYNC_AVG_SPEED_KMH", AVERAGE_SPEED_KMH),
                max_delivery_minutes=_float(env, "CARTSYNC_MAX_DELIVERY_MIN", MAX_DELIVERY_MIN),
                max_bad_condition_minutes=_float(
                    env, "CARTSYNC_MAX_BAD_CONDITION_MIN", MAX_BAD_CONDITION_MIN
                ),
                bad_conditions=env.get("CARTSYNC_BAD_CONDITIONS", "").lower() in _TRUE,
            )
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

        data_dir = env.get("CARTSYNC_DATA_DIR")
        return cls(
            data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
            user_id=env.get("CARTSYNC_USER") or None,
            delivery=delivery,
            reload_delay=_float(env, "CARTSYNC_RELOAD_DELAY", RELOAD_DELAY_SECONDS),
            log_level=env.get("CARTSYNC_LOG_LEVEL", "WARNING").upper(),
        )


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
