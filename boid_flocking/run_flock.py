"""CLI entrypoint for a single seeded flocking run.

This module owns CLI argument parsing and logging setup only.  The run itself
lives in ``boid_flocking.simulation.engine.run_simulation``.

Usage::

    python -m boid_flocking.run_flock --amount 50 --steps 300 --seed 7
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from boid_flocking.config.constants import (
    ALIGNMENT_FACTOR,
    AMOUNT,
    BOUNDARY_FACTOR,
    COHESION_FACTOR,
    COHESION_RADIUS,
    DELTA_TIME,
    INITIAL_BOUNDS,
    MAX_FORCE,
    MAX_VELOCITY,
    NEAREST_FRACTION,
    NUM_STEPS,
    REYNOLDS_ALIGNMENT_WEIGHT,
    REYNOLDS_COHESION_WEIGHT,
    REYNOLDS_SEPARATION_WEIGHT,
    SEPARATION_FACTOR,
    SEPARATION_RADIUS,
    SPEED_BOOST_DIVISOR,
    VOLUME_BOUNDS,
)
from boid_flocking.config.types import (
    BoundaryPolicyKind,
    CohesionScope,
    ExecutionMode,
    FlockConfiguration,
    RuleModel,
    RunConfig,
    SchedulerConfig,
    SeparationWeighting,
)
from boid_flocking.simulation.engine import run_simulation

# ---------------------------------------------------------------------------
# CLI parsing helpers
# ---------------------------------------------------------------------------


def _coerce_bool(raw: object, key: str) -> bool:
    """Coerce raw value to bool with strict string-check."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"{key} must be a boolean value")


def _coerce_int(raw: object, key: str) -> int:
    """Coerce raw value to int; rejects booleans and non-integer floats."""
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be an integer value")
    if isinstance(raw, float):
        if raw != int(raw):
            raise ValueError(f"{key} must be an integer value, got {raw!r}")
        return int(raw)
    if isinstance(raw, (int, str)):
        return int(raw)
    raise ValueError(f"{key} must be an integer value")


def _coerce_float(raw: object, key: str) -> float:
    """Coerce raw value to float; rejects booleans."""
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be a float value")
    if isinstance(raw, (int, float, str)):
        return float(raw)
    raise ValueError(f"{key} must be a float value")


def _coerce_str(raw: object, key: str) -> str:
    """Coerce raw value to str; rejects booleans."""
    if isinstance(raw, bool):
        raise ValueError(f"{key} must be a string-coercible value")
    if isinstance(raw, (str, Path, int, float)):
        return str(raw)
    raise ValueError(f"{key} must be a string-coercible value")


def _get_val(cli_val: object, key: str, file_cfg: dict[str, object], default: object) -> object:
    """CLI > file > default resolution."""
    if cli_val is not None:
        return cli_val
    return file_cfg.get(key, default)


def _get_bool(cli_val: bool | None, key: str, file_cfg: dict[str, object], default: bool) -> bool:
    return _coerce_bool(_get_val(cli_val, key, file_cfg, default), key)


def _get_int(cli_val: int | None, key: str, file_cfg: dict[str, object], default: int) -> int:
    return _coerce_int(_get_val(cli_val, key, file_cfg, default), key)


def _get_float(
    cli_val: float | None, key: str, file_cfg: dict[str, object], default: float
) -> float:
    return _coerce_float(_get_val(cli_val, key, file_cfg, default), key)


def _get_str(cli_val: str | None, key: str, file_cfg: dict[str, object], default: str) -> str:
    return _coerce_str(_get_val(cli_val, key, file_cfg, default), key)


def _get_optional_int(
    cli_val: int | None, key: str, file_cfg: dict[str, object], default: int | None = None
) -> int | None:
    """CLI > file > default resolution; an explicit JSON null stays None."""
    raw = _get_val(cli_val, key, file_cfg, default)
    return None if raw is None else _coerce_int(raw, key)


def _get_optional_float(
    cli_val: float | None, key: str, file_cfg: dict[str, object], default: float | None = None
) -> float | None:
    raw = _get_val(cli_val, key, file_cfg, default)
    return None if raw is None else _coerce_float(raw, key)


def _coerce_vec3(raw: object, key: str) -> tuple[float, float, float]:
    """Coerce a 3-item list or a ``"x,y,z"`` string to a float triple."""
    if isinstance(raw, str):
        raw = raw.replace(",", " ").split()
    if isinstance(raw, (list, tuple)) and len(raw) == 3:
        x, y, z = (_coerce_float(value, key) for value in raw)
        return (x, y, z)
    raise ValueError(f"{key} must be three numbers")


def _get_vec3(
    cli_val: list[float] | None,
    key: str,
    file_cfg: dict[str, object],
    default: tuple[float, float, float],
) -> tuple[float, float, float]:
    return _coerce_vec3(_get_val(cli_val, key, file_cfg, default), key)


def _flatten_file_config(raw: object) -> dict[str, object]:
    """Flatten a config file into one key namespace.

    Accepts either flat keys or the nested layout written to
    ``run_config.json`` (``config.flock`` / ``config.scheduler``), so a saved
    run can be replayed.  Flat keys win over nested ones.
    """
    if not isinstance(raw, dict):
        raise ValueError("config file must contain a JSON object")
    body = raw.get("config", raw)
    if not isinstance(body, dict):
        raise ValueError("config section must be a JSON object")
    flat: dict[str, object] = {}
    for section in ("flock", "scheduler"):
        nested = body.get(section)
        if nested is None:
            continue
        if not isinstance(nested, dict):
            raise ValueError(f"{section} section must be a JSON object")
        flat.update(nested)
    flat.update({k: v for k, v in body.items() if k not in ("flock", "scheduler")})
    if "max_workers" in flat:
        flat.setdefault("workers", flat["max_workers"])
    return flat


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Run a seeded boid flocking simulation")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON config file (CLI args override file values)",
    )
    parser.add_argument("--amount", type=int, default=None)
    parser.add_argument("--steps", type=int, default=None)
    parser.add_argument("--delta-time", type=float, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--max-velocity", type=float, default=None)
    parser.add_argument(
        "--rule-model",
        type=str,
        choices=[model.value for model in RuleModel],
        default=None,
    )
    parser.add_argument(
        "--boundary-policy",
        type=str,
        choices=[kind.value for kind in BoundaryPolicyKind],
        default=None,
    )
    parser.add_argument(
        "--cohesion-scope",
        type=str,
        choices=[scope.value for scope in CohesionScope],
        default=None,
    )
    parser.add_argument(
        "--execution-mode",
        type=str,
        choices=[mode.value for mode in ExecutionMode],
        default=None,
    )
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--chunk-size", type=int, default=None)
    parser.add_argument("--follow-leader", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--separation-radius", type=float, default=None)
    parser.add_argument("--cohesion-radius", type=float, default=None)
    parser.add_argument(
        "--alignment-radius",
        type=float,
        default=None,
        help="Alignment tier radius (defaults to the cohesion radius)",
    )
    parser.add_argument("--cohesion-factor", type=float, default=None)
    parser.add_argument("--separation-factor", type=float, default=None)
    parser.add_argument("--alignment-factor", type=float, default=None)
    parser.add_argument("--boundary-factor", type=float, default=None)
    parser.add_argument(
        "--volume-bounds",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=None,
    )
    parser.add_argument(
        "--initial-bounds",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=None,
    )
    parser.add_argument("--max-force", type=float, default=None)
    parser.add_argument("--min-speed", type=float, default=None)
    parser.add_argument("--nearest-fraction", type=float, default=None)
    parser.add_argument(
        "--separation-weighting",
        type=str,
        choices=[weighting.value for weighting in SeparationWeighting],
        default=None,
    )
    parser.add_argument(
        "--normalize-steering", action=argparse.BooleanOptionalAction, default=None
    )
    parser.add_argument("--log-interval", type=int, default=None)
    parser.add_argument("--out-dir", type=Path, default=None)
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )
    return parser


# ---------------------------------------------------------------------------
# Main CLI
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for a flocking run.

    Supports ``--config path/to/config.json`` for reproducibility.  CLI
    arguments override config-file values; config-file values override
    built-in defaults.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load config file defaults (CLI overrides file, file overrides built-in)
    file_cfg: dict[str, object] = {}
    if args.config is not None:
        try:
            raw_cfg = json.loads(Path(args.config).read_text())
        except FileNotFoundError:
            parser.error(f"Config file not found: {args.config}")
        except json.JSONDecodeError as exc:
            parser.error(f"Config file is not valid JSON: {args.config}: {exc}")
        try:
            file_cfg = _flatten_file_config(raw_cfg)
        except ValueError as exc:
            parser.error(f"{args.config}: {exc}")

    try:
        flock_config = FlockConfiguration(
            max_velocity=_get_float(args.max_velocity, "max_velocity", file_cfg, MAX_VELOCITY),
            separation_radius=_get_float(
                args.separation_radius, "separation_radius", file_cfg, SEPARATION_RADIUS
            ),
            cohesion_radius=_get_float(
                args.cohesion_radius, "cohesion_radius", file_cfg, COHESION_RADIUS
            ),
            alignment_radius=_get_optional_float(
                args.alignment_radius, "alignment_radius", file_cfg
            ),
            cohesion_factor=_get_float(
                args.cohesion_factor, "cohesion_factor", file_cfg, COHESION_FACTOR
            ),
            separation_factor=_get_float(
                args.separation_factor, "separation_factor", file_cfg, SEPARATION_FACTOR
            ),
            alignment_factor=_get_float(
                args.alignment_factor, "alignment_factor", file_cfg, ALIGNMENT_FACTOR
            ),
            boundary_policy=_get_str(
                args.boundary_policy,
                "boundary_policy",
                file_cfg,
                BoundaryPolicyKind.BOUNCE.value,
            ),
            boundary_factor=_get_float(
                args.boundary_factor, "boundary_factor", file_cfg, BOUNDARY_FACTOR
            ),
            volume_bounds=_get_vec3(args.volume_bounds, "volume_bounds", file_cfg, VOLUME_BOUNDS),
            initial_bounds=_get_vec3(
                args.initial_bounds, "initial_bounds", file_cfg, INITIAL_BOUNDS
            ),
            follow_leader=_get_bool(args.follow_leader, "follow_leader", file_cfg, False),
            rule_model=_get_str(
                args.rule_model, "rule_model", file_cfg, RuleModel.CLASSIC.value
            ),
            cohesion_scope=_get_str(
                args.cohesion_scope, "cohesion_scope", file_cfg, CohesionScope.RADIUS.value
            ),
            nearest_fraction=_get_float(
                args.nearest_fraction, "nearest_fraction", file_cfg, NEAREST_FRACTION
            ),
            separation_weighting=_get_str(
                args.separation_weighting,
                "separation_weighting",
                file_cfg,
                SeparationWeighting.UNIT.value,
            ),
            normalize_steering=_get_bool(
                args.normalize_steering, "normalize_steering", file_cfg, False
            ),
            max_force=_get_float(args.max_force, "max_force", file_cfg, MAX_FORCE),
            separation_weight=_get_float(
                None, "separation_weight", file_cfg, REYNOLDS_SEPARATION_WEIGHT
            ),
            alignment_weight=_get_float(
                None, "alignment_weight", file_cfg, REYNOLDS_ALIGNMENT_WEIGHT
            ),
            cohesion_weight=_get_float(
                None, "cohesion_weight", file_cfg, REYNOLDS_COHESION_WEIGHT
            ),
            min_speed=_get_float(args.min_speed, "min_speed", file_cfg, 0.0),
            speed_boost_divisor=_get_float(
                None, "speed_boost_divisor", file_cfg, SPEED_BOOST_DIVISOR
            ),
        )
        scheduler_config = SchedulerConfig(
            execution_mode=_get_str(
                args.execution_mode,
                "execution_mode",
                file_cfg,
                ExecutionMode.THREADED.value,
            ),
            max_workers=_get_optional_int(args.workers, "workers", file_cfg),
            chunk_size=_get_int(args.chunk_size, "chunk_size", file_cfg, 1),
        )
        run_config = RunConfig(
            amount=_get_int(args.amount, "amount", file_cfg, AMOUNT),
            steps=_get_int(args.steps, "steps", file_cfg, NUM_STEPS),
            delta_time=_get_float(args.delta_time, "delta_time", file_cfg, DELTA_TIME),
            seed=_get_optional_int(args.seed, "seed", file_cfg, 0),
            out_dir=Path(_get_str(args.out_dir, "out_dir", file_cfg, "data")),
            log_interval=_get_int(args.log_interval, "log_interval", file_cfg, 1),
            flock=flock_config,
            scheduler=scheduler_config,
        )
    except ValueError as exc:
        parser.error(str(exc))

    summary = run_simulation(run_config)
    print(
        json.dumps(
            {
                "run_id": summary.run_id,
                "amount": summary.amount,
                "steps": summary.steps,
                "final_polarization": summary.final_polarization,
                "final_mean_speed": summary.final_mean_speed,
                "max_speed_observed": summary.max_speed_observed,
                "trajectory_path": str(summary.trajectory_path),
                "metrics_path": str(summary.metrics_path),
            },
            ensure_ascii=False,
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
