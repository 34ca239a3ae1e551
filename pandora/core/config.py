"""
Configuration system for Project Pandora.

Provides a hierarchical dataclass-based config with JSON serialization,
validation, and sensible defaults for all simulation parameters.
"""

from __future__ import annotations

import json
import warnings
from copy import deepcopy
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any


RULESETS = ("full", "minimal")


# ---------------------------------------------------------------------------
# Sub-config dataclasses (grouped by domain)
# ---------------------------------------------------------------------------

@dataclass
class WorldConfig:
    """Grid size, seeding and initial population."""
    width: int = 80
    height: int = 60
    seed: int = 42
    initial_population_ratio: float = 0.25  # chance a cell starts ALIVE

    def validate(self) -> list[str]:
        errors = []
        if self.width < 3:
            errors.append(f"world.width must be >= 3, got {self.width}")
        if self.height < 3:
            errors.append(f"world.height must be >= 3, got {self.height}")
        if self.width > 10_000:
            errors.append(f"world.width must be <= 10000, got {self.width}")
        if self.height > 10_000:
            errors.append(f"world.height must be <= 10000, got {self.height}")
        if not (0.0 <= self.initial_population_ratio <= 1.0):
            errors.append(
                f"world.initial_population_ratio must be in [0, 1], got {self.initial_population_ratio}"
            )
        return errors


@dataclass
class EnergyConfig:
    """Energy economy: starting energy and per-generation costs."""
    initial_energy: int = 100
    upkeep: int = 1                 # paid by every live cell each generation
    crowding_penalty: int = 5       # extra cost outside the [2, 3] neighbor band

    def validate(self) -> list[str]:
        errors = []
        if self.initial_energy < 1:
            errors.append(f"energy.initial_energy must be >= 1, got {self.initial_energy}")
        if self.upkeep < 0:
            errors.append(f"energy.upkeep must be >= 0, got {self.upkeep}")
        if self.crowding_penalty < 0:
            errors.append(f"energy.crowding_penalty must be >= 0, got {self.crowding_penalty}")
        return errors


@dataclass
class MutationConfig:
    """Mutation and warrior caste promotion."""
    mutation_probability: float = 0.01
    birth_mutation_probability: float = 0.01
    warrior_threshold: int = 200
    warrior_promotion_probability: float = 0.05
    spontaneous_warrior_probability: float = 0.0005

    def validate(self) -> list[str]:
        errors = []
        for name in (
            "mutation_probability",
            "birth_mutation_probability",
            "warrior_promotion_probability",
            "spontaneous_warrior_probability",
        ):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                errors.append(f"mutation.{name} must be in [0, 1], got {value}")
        if self.warrior_threshold < 0:
            errors.append(f"mutation.warrior_threshold must be >= 0, got {self.warrior_threshold}")
        return errors


@dataclass
class ReproductionConfig:
    """Energy-gated reproduction into an adjacent empty cell."""
    threshold: int = 150            # reproduce only when energy > threshold
    cost: int = 60
    offspring_energy: int = 50
    warrior_demotion_probability: float = 0.1

    def validate(self) -> list[str]:
        errors = []
        if self.threshold < 0:
            errors.append(f"reproduction.threshold must be >= 0, got {self.threshold}")
        if self.cost < 0:
            errors.append(f"reproduction.cost must be >= 0, got {self.cost}")
        if self.offspring_energy < 1:
            errors.append(f"reproduction.offspring_energy must be >= 1, got {self.offspring_energy}")
        if not (0.0 <= self.warrior_demotion_probability <= 1.0):
            errors.append(
                "reproduction.warrior_demotion_probability must be in [0, 1], "
                f"got {self.warrior_demotion_probability}"
            )
        return errors


@dataclass
class AttackProfile:
    """Melee parameters for one kind of attacker."""
    damage: int = 10
    range: int = 1
    energy_gain: int = 5
    cooldown: int = 2

    def validate(self, section: str = "combat") -> list[str]:
        errors = []
        if self.damage < 0:
            errors.append(f"{section}.damage must be >= 0, got {self.damage}")
        if self.range < 1:
            errors.append(f"{section}.range must be >= 1, got {self.range}")
        if self.energy_gain < 0:
            errors.append(f"{section}.energy_gain must be >= 0, got {self.energy_gain}")
        if self.cooldown < 0:
            errors.append(f"{section}.cooldown must be >= 0, got {self.cooldown}")
        return errors


@dataclass
class CombatConfig:
    """Attack profiles per cell kind."""
    warrior: AttackProfile = field(
        default_factory=lambda: AttackProfile(damage=30, range=2, energy_gain=15, cooldown=5)
    )
    alive: AttackProfile = field(
        default_factory=lambda: AttackProfile(damage=10, range=1, energy_gain=5, cooldown=2)
    )
    mutated: AttackProfile = field(
        default_factory=lambda: AttackProfile(damage=20, range=2, energy_gain=10, cooldown=2)
    )

    def validate(self) -> list[str]:
        errors = []
        errors.extend(self.warrior.validate("combat.warrior"))
        errors.extend(self.alive.validate("combat.alive"))
        errors.extend(self.mutated.validate("combat.mutated"))
        return errors


@dataclass
class MovementConfig:
    """Momentum / field movement parameters."""
    speed_divisor: float = 50.0     # speed = energy / speed_divisor
    max_speed: float = 2.0
    momentum_weight: float = 0.7
    field_weight: float = 0.3
    field_radius: int = 2
    jitter: float = 0.1
    displacement_probability: float = 0.8   # chance to overwrite an occupied destination
    max_stagnant_cycles: int = 10

    def validate(self) -> list[str]:
        errors = []
        if self.speed_divisor <= 0:
            errors.append(f"movement.speed_divisor must be > 0, got {self.speed_divisor}")
        if self.max_speed < 0:
            errors.append(f"movement.max_speed must be >= 0, got {self.max_speed}")
        if self.momentum_weight < 0 or self.field_weight < 0:
            errors.append("movement.momentum_weight and movement.field_weight must be >= 0")
        if self.field_radius < 1:
            errors.append(f"movement.field_radius must be >= 1, got {self.field_radius}")
        if self.jitter < 0:
            errors.append(f"movement.jitter must be >= 0, got {self.jitter}")
        if not (0.0 <= self.displacement_probability <= 1.0):
            errors.append(
                f"movement.displacement_probability must be in [0, 1], got {self.displacement_probability}"
            )
        if self.max_stagnant_cycles < 1:
            errors.append(f"movement.max_stagnant_cycles must be >= 1, got {self.max_stagnant_cycles}")
        return errors


@dataclass
class RulesConfig:
    """Which rule set drives the generation pipeline."""
    ruleset: str = "full"   # "full" (energy economy) or "minimal" (classic three-state)

    def validate(self) -> list[str]:
        errors = []
        if self.ruleset not in RULESETS:
            errors.append(f"rules.ruleset must be one of {RULESETS}, got '{self.ruleset}'")
        return errors


@dataclass
class VizConfig:
    """Rendering shell and output settings."""
    tick_interval_ms: int = 100
    cell_size: int = 10
    show_overlay: bool = True
    output_dir: str = "runs"

    def validate(self) -> list[str]:
        errors = []
        if self.tick_interval_ms < 0:
            errors.append(f"viz.tick_interval_ms must be >= 0, got {self.tick_interval_ms}")
        if self.cell_size < 1:
            errors.append(f"viz.cell_size must be >= 1, got {self.cell_size}")
        return errors


@dataclass
class SweepStabilityConfig:
    """Stability criteria for parameter sweep mode."""
    min_population_pct: float = 0.20    # live cells must stay above initial * this
    max_population_pct: float = 3.00    # live cells must stay below initial * this
    check_after_generation: int = 10

    def validate(self) -> list[str]:
        errors = []
        if self.min_population_pct < 0:
            errors.append(f"sweep.stability.min_population_pct must be >= 0, got {self.min_population_pct}")
        if self.max_population_pct <= self.min_population_pct:
            errors.append("sweep.stability.max_population_pct must be > min_population_pct")
        if self.check_after_generation < 0:
            errors.append(
                f"sweep.stability.check_after_generation must be >= 0, got {self.check_after_generation}"
            )
        return errors


@dataclass
class SweepConfig:
    """Parameter sweep / batch run settings."""
    runs_per_set: int = 5
    max_generations: int = 200
    base_seed: int = 42
    parallel_workers: int = 4
    stability: SweepStabilityConfig = field(default_factory=SweepStabilityConfig)

    def validate(self) -> list[str]:
        errors = []
        if self.runs_per_set < 1:
            errors.append(f"sweep.runs_per_set must be >= 1, got {self.runs_per_set}")
        if self.max_generations < 1:
            errors.append(f"sweep.max_generations must be >= 1, got {self.max_generations}")
        if self.parallel_workers < 1:
            errors.append(f"sweep.parallel_workers must be >= 1, got {self.parallel_workers}")
        errors.extend(self.stability.validate())
        return errors


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class SimConfig:
    """
    Top-level simulation configuration.

    All parameters are adjustable. Nested dataclasses group related settings.
    Load from JSON with `load_config()`, validate with `validate()`.
    """
    world: WorldConfig = field(default_factory=WorldConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    mutation: MutationConfig = field(default_factory=MutationConfig)
    reproduction: ReproductionConfig = field(default_factory=ReproductionConfig)
    combat: CombatConfig = field(default_factory=CombatConfig)
    movement: MovementConfig = field(default_factory=MovementConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    viz: VizConfig = field(default_factory=VizConfig)
    sweep: SweepConfig = field(default_factory=SweepConfig)

    def validate(self) -> list[str]:
        """Validate all config sections. Returns list of error messages (empty = valid)."""
        errors = []
        for f in fields(self):
            sub = getattr(self, f.name)
            if hasattr(sub, "validate"):
                errors.extend(sub.validate())
        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dict for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimConfig:
        """Create SimConfig from nested dict, merging with defaults."""
        config = cls()
        _merge_into_dataclass(config, data)
        return config

    def copy(self) -> SimConfig:
        """Deep copy of this config."""
        return deepcopy(self)


# ---------------------------------------------------------------------------
# JSON I/O helpers
# ---------------------------------------------------------------------------

def _merge_into_dataclass(target: Any, source: dict[str, Any]) -> None:
    """
    Recursively merge a dict into a dataclass instance.
    Unknown keys emit a warning but don't raise.
    """
    if not isinstance(source, dict):
        return

    known_fields = {f.name for f in fields(target)}
    for key, value in source.items():
        if key not in known_fields:
            warnings.warn(
                f"Unknown config key '{key}' in section {type(target).__name__} - ignored.",
                UserWarning,
                stacklevel=3,
            )
            continue

        current = getattr(target, key)

        if hasattr(current, "__dataclass_fields__") and isinstance(value, dict):
            _merge_into_dataclass(current, value)
        else:
            setattr(target, key, value)


def load_config(path: str | Path) -> SimConfig:
    """
    Load config from a JSON file. Missing fields use defaults.

    Args:
        path: Path to JSON config file.

    Returns:
        Validated SimConfig instance.

    Raises:
        FileNotFoundError: If path doesn't exist.
        json.JSONDecodeError: If JSON is malformed.
        ValueError: If config values are invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    config = SimConfig.from_dict(data)

    errors = config.validate()
    if errors:
        msg = "Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(msg)

    return config


def save_config(config: SimConfig, path: str | Path) -> None:
    """Save config to JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)


def get_default_config() -> SimConfig:
    """Return a fresh default config (all defaults, validated)."""
    config = SimConfig()
    errors = config.validate()
    assert not errors, f"Default config is invalid: {errors}"
    return config


def apply_param_override(config: SimConfig, dotted_key: str, value: Any) -> None:
    """
    Apply a single parameter override using dot notation.

    Example:
        apply_param_override(config, "energy.upkeep", 2)
        apply_param_override(config, "combat.warrior.damage", 40)

    Raises:
        KeyError: If the path doesn't exist.
    """
    parts = dotted_key.split(".")
    obj = config
    for part in parts[:-1]:
        if not hasattr(obj, part):
            raise KeyError(f"Config path '{dotted_key}' invalid: '{part}' not found in {type(obj).__name__}")
        obj = getattr(obj, part)

    final_key = parts[-1]
    if not hasattr(obj, final_key):
        raise KeyError(f"Config path '{dotted_key}' invalid: '{final_key}' not found in {type(obj).__name__}")

    setattr(obj, final_key, value)
