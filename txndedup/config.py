"""YAML configuration loader for txndedup.

Loads matcher sensitivity from ``dedup.yaml`` in the config directory.
Every key is optional; missing keys fall back to the DedupSettings
defaults, so the engine also runs with no config directory at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from txndedup.matching.models import DedupMode


@dataclass(frozen=True)
class Weights:
    """Points each sub-score contributes; must total 100."""
    date: float = 35.0
    amount: float = 45.0
    description: float = 15.0
    categorical: float = 5.0

    @property
    def total(self) -> float:
        return self.date + self.amount + self.description + self.categorical


@dataclass(frozen=True)
class DedupSettings:
    """Thresholds and tolerances for scoring and batch classification."""
    weights: Weights = field(default_factory=Weights)
    high_confidence: int = 95
    medium_confidence: int = 85
    smart_threshold: int = 98
    blocking_threshold: int = 98
    cross_day_cap: int = 85
    date_tolerance_days: int = 1
    amount_tolerance: float = 0.001
    suppress_borderline_warnings: bool = True
    default_mode: DedupMode = DedupMode.SMART

    def __post_init__(self):
        for name in ("high_confidence", "medium_confidence", "smart_threshold",
                     "blocking_threshold", "cross_day_cap"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")
        if self.medium_confidence > self.high_confidence:
            raise ValueError(
                "medium_confidence must not exceed high_confidence "
                f"({self.medium_confidence} > {self.high_confidence})"
            )
        if self.date_tolerance_days < 0:
            raise ValueError("date_tolerance_days must be >= 0")
        if self.amount_tolerance < 0:
            raise ValueError("amount_tolerance must be >= 0")
        if self.weights.total <= 0:
            raise ValueError("weights must sum to a positive number")

    @classmethod
    def from_dict(cls, data: dict) -> DedupSettings:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown dedup settings: {sorted(unknown)}")

        kwargs = dict(data)
        if "weights" in kwargs:
            raw_weights = kwargs["weights"] or {}
            weight_names = {f.name for f in fields(Weights)}
            bad = set(raw_weights) - weight_names
            if bad:
                raise ValueError(f"Unknown weight keys: {sorted(bad)}")
            kwargs["weights"] = Weights(**{k: float(v) for k, v in raw_weights.items()})
        if "default_mode" in kwargs:
            kwargs["default_mode"] = DedupMode.parse(kwargs["default_mode"])
        return cls(**kwargs)


class Config:
    """Loads and provides access to the YAML configuration files."""

    SETTINGS_FILE = "dedup.yaml"

    def __init__(self, config_dir: Path | str = "config"):
        self.config_dir = Path(config_dir)
        if not self.config_dir.is_dir():
            raise FileNotFoundError(f"Config directory not found: {self.config_dir}")

        self._dedup: dict | None = None
        self._settings: DedupSettings | None = None

    def _load(self, filename: str) -> dict:
        path = self.config_dir / filename
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
        if data is None:
            raise ValueError(f"Empty config file: {path}")
        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
        return data

    @property
    def dedup(self) -> dict:
        """Raw contents of dedup.yaml."""
        if self._dedup is None:
            data = self._load(self.SETTINGS_FILE)
            section = data.get("dedup", data)
            if section is None:
                # `dedup:` with every key commented out
                section = {}
            if not isinstance(section, dict):
                raise ValueError(
                    f"Expected a mapping under 'dedup' in {self.config_dir / self.SETTINGS_FILE}, "
                    f"got {type(section).__name__}"
                )
            self._dedup = section
        return self._dedup

    @property
    def settings(self) -> DedupSettings:
        if self._settings is None:
            self._settings = DedupSettings.from_dict(self.dedup)
        return self._settings
