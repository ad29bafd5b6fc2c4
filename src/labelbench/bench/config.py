"""Benchmark configuration and profile loading.

Handles:
- Loading benchmark profiles from YAML files.
- Merging CLI options with profile defaults.
- Validating the final configuration before any test starts.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

log = logging.getLogger("labelbench")

DEFAULT_DATASETS = [
    "3dpes",
    "fingerprints",
    "hamlet",
    "medical",
    "mirflickr",
    "test_random",
    "tobacco800",
]


class ConfigurationError(ValueError):
    """Raised when a benchmark cannot start because of its configuration."""


# ---------------------------------------------------------------------------
# BenchConfig
# ---------------------------------------------------------------------------


@dataclass
class BenchConfig:
    """Resolved configuration for a benchmark run."""

    # Identity
    bench_id: str = ""  # Auto-generated if empty
    name: str = ""
    description: str = ""

    # Algorithms (keys into the registries, plus display names)
    algorithm_keys: list[str] = field(default_factory=list)
    algorithm_names: list[str] = field(default_factory=list)
    memory_algorithm_keys: list[str] = field(default_factory=list)
    memory_algorithm_names: list[str] = field(default_factory=list)

    # Dataset lists, one per test kind
    check_list: list[str] = field(default_factory=lambda: list(DEFAULT_DATASETS))
    averages_tests: list[str] = field(
        default_factory=lambda: [d for d in DEFAULT_DATASETS if d != "test_random"]
    )
    density_size_tests: list[str] = field(default_factory=lambda: ["test_random"])
    memory_tests: list[str] = field(default_factory=lambda: list(DEFAULT_DATASETS))

    # Repeated trials
    at_tests_number: int = 1
    ds_tests_number: int = 1

    # Test kinds
    perform_check: bool = True
    at_perform: bool = True
    ds_perform: bool = True
    mt_perform: bool = True

    # Output toggles
    at_save_middle_tests: bool = False
    ds_save_middle_tests: bool = False
    at_color_labels: bool = False
    ds_color_labels: bool = False
    write_n_labels: bool = True

    # Paths
    input_path: Path = field(default_factory=lambda: Path("input"))
    output_path: Path = field(default_factory=lambda: Path("output"))
    list_file: str = "files.txt"
    colors_folder: str = "colors"
    middle_folder: str = "middle_results"

    # CLI provenance
    cli_args: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.bench_id:
            self.bench_id = f"bench_{time.strftime('%Y%m%d_%H%M%S')}"

    def dataset_dir(self, dataset: str) -> Path:
        """Directory holding the text artifacts of *dataset*."""
        return self.output_path / dataset


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: BenchConfig) -> list[ValidationError]:
    """Validate a benchmark configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if not config.algorithm_keys:
        errors.append(
            ValidationError(
                field="algorithm_keys",
                message="No labeling algorithms configured.",
            )
        )
    elif len(config.algorithm_keys) != len(config.algorithm_names):
        errors.append(
            ValidationError(
                field="algorithm_names",
                message=(
                    "'algorithm_keys' and 'algorithm_names' must match in length "
                    f"and order (got {len(config.algorithm_keys)} and "
                    f"{len(config.algorithm_names)})."
                ),
            )
        )

    if config.mt_perform:
        keys = config.memory_algorithm_keys
        names = config.memory_algorithm_names
        if not keys or len(keys) != len(names):
            errors.append(
                ValidationError(
                    field="memory_algorithm_keys",
                    message=(
                        "'memory_algorithm_keys' and 'memory_algorithm_names' must match "
                        "in length and order and must not be empty. Set 'mt_perform' "
                        "to false to skip memory tests."
                    ),
                )
            )

    for name in ("at_tests_number", "ds_tests_number"):
        value = getattr(config, name)
        if value < 1:
            errors.append(
                ValidationError(
                    field=name,
                    message=f"Need at least 1 trial (got {value}).",
                )
            )

    if not config.input_path.exists():
        errors.append(
            ValidationError(
                field="input_path",
                message=f"Input path does not exist: {config.input_path}",
                severity="warning",
            )
        )

    if config.at_tests_number == 1 and config.at_perform:
        errors.append(
            ValidationError(
                field="at_tests_number",
                message="A single trial makes the minimum equal to that one measurement.",
                severity="warning",
            )
        )

    return errors


def check_config(config: BenchConfig) -> None:
    """Log validation warnings and raise on errors.

    Raises:
        ConfigurationError: If any error-severity problem was found.
    """
    errors = validate_config(config)
    for w in (e for e in errors if e.severity == "warning"):
        log.warning("Config warning: %s: %s", w.field, w.message)
    fatal = [e for e in errors if e.severity == "error"]
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ConfigurationError("Invalid benchmark configuration:\n" + "\n".join(messages))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------

_LIST_KEYS = (
    "algorithm_keys",
    "algorithm_names",
    "memory_algorithm_keys",
    "memory_algorithm_names",
    "check_list",
    "averages_tests",
    "density_size_tests",
    "memory_tests",
)
_INT_KEYS = ("at_tests_number", "ds_tests_number")
_BOOL_KEYS = (
    "perform_check",
    "at_perform",
    "ds_perform",
    "mt_perform",
    "at_save_middle_tests",
    "ds_save_middle_tests",
    "at_color_labels",
    "ds_color_labels",
    "write_n_labels",
)
_STR_KEYS = ("bench_id", "name", "description", "list_file", "colors_folder", "middle_folder")
_PATH_KEYS = ("input_path", "output_path")


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a benchmark profile from a YAML file.

    Profile format::

        algorithm_keys: [union_find, flood_fill]
        algorithm_names: [UF, "FF\\\\_BFS"]
        memory_algorithm_keys: [union_find_mem]
        memory_algorithm_names: [UF]
        check_list: [test_random]
        averages_tests: [fingerprints, medical]
        at_tests_number: 5
        at_color_labels: false
        input_path: input
        output_path: output

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Profile must be a YAML mapping, got {type(data).__name__}")
    return data


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchConfig:
    """Build a BenchConfig from a parsed YAML profile.

    CLI overrides whose value is not None take precedence over profile
    values.  Unknown profile keys are logged and ignored.

    Raises:
        ConfigurationError: If a value has the wrong type.
    """
    merged = dict(profile_data)
    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[key] = value

    known = set(_LIST_KEYS + _INT_KEYS + _BOOL_KEYS + _STR_KEYS + _PATH_KEYS)
    for key in merged:
        if key not in known:
            log.warning("Unknown profile key '%s' ignored", key)

    config = BenchConfig()
    for key in _LIST_KEYS:
        if key in merged:
            value = merged[key]
            if isinstance(value, str):
                value = [v.strip() for v in value.split(",") if v.strip()]
            if not isinstance(value, list):
                raise ConfigurationError(f"'{key}' must be a list, got {type(value).__name__}")
            setattr(config, key, [str(v) for v in value])
    for key in _INT_KEYS:
        if key in merged:
            try:
                setattr(config, key, int(merged[key]))
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"'{key}' must be an integer") from exc
    for key in _BOOL_KEYS:
        if key in merged:
            value = merged[key]
            if not isinstance(value, bool):
                raise ConfigurationError(f"'{key}' must be true or false")
            setattr(config, key, value)
    for key in _STR_KEYS:
        if key in merged:
            setattr(config, key, str(merged[key]))
    for key in _PATH_KEYS:
        if key in merged:
            value = merged[key]
            if not isinstance(value, (str, Path)) or not str(value):
                raise ConfigurationError(f"'{key}' must be a directory path")
            setattr(config, key, Path(value))

    return config
