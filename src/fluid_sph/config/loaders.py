"""
Reading and writing SystemConfig files.

A config file is a YAML (.yaml/.yml) or JSON (.json) mapping, normally split
into the sections ``time``, ``fluid``, ``container`` and ``misc``:

    time:
      dt: 0.001
      adaptive: true
    fluid:
      h: 0.1
      sigma: 72.75

Each section accepts the SystemConfig field names plus a few short aliases
(``dt``, ``tolerance``, ``h``, ``k``, ``sigma``). Top-level keys outside the
sections are taken as field names directly.
"""

from typing import Callable, Dict, Any, List, Union
from pathlib import Path
import yaml
import json

from fluid_sph.core.system import SystemConfig


# Section -> {key accepted in the file: SystemConfig field}
FIELD_MAPPINGS = {
    'time': {
        't_start': 't_start',
        'dt': 'dt_initial',
        'dt_initial': 'dt_initial',
        'dt_min': 'dt_min',
        'dt_max': 'dt_max',
        'adaptive': 'adaptive',
        'error_tolerance': 'error_tolerance',
        'tolerance': 'error_tolerance',
    },
    'fluid': {
        'h': 'smoothing_length',
        'smoothing_length': 'smoothing_length',
        'stiffness': 'stiffness',
        'k': 'stiffness',
        'viscosity': 'viscosity',
        'surface_tension': 'surface_tension',
        'sigma': 'surface_tension',
        'surface_threshold': 'surface_threshold',
        'density_floor': 'density_floor',
    },
    'container': {
        'x_min': 'x_min',
        'x_max': 'x_max',
        'y_min': 'y_min',
        'y_max': 'y_max',
        'z_min': 'z_min',
        'z_max': 'z_max',
    },
    'misc': {
        'log_interval': 'log_interval',
        'verbose': 'verbose',
        'random_seed': 'random_seed',
    },
}


def load_yaml(filepath: Path) -> Dict[str, Any]:
    """Parse a YAML file; an empty document gives an empty dict."""
    with open(filepath, 'r') as f:
        return yaml.safe_load(f) or {}


def load_json(filepath: Path) -> Dict[str, Any]:
    """Parse a JSON file."""
    with open(filepath, 'r') as f:
        return json.load(f)


_READERS: Dict[str, Callable[[Path], Dict[str, Any]]] = {
    '.yaml': load_yaml,
    '.yml': load_yaml,
    '.json': load_json,
}


def load_config(filename: Union[str, Path], **overrides) -> SystemConfig:
    """
    Build a validated SystemConfig from a YAML or JSON file.

    Parameters
    ----------
    filename : str or Path
        Config file; the suffix selects the parser.
    **overrides
        Flat field values applied on top of the file (e.g. ``adaptive=True``).

    Returns
    -------
    config : SystemConfig

    Raises
    ------
    FileNotFoundError
        The file does not exist.
    ValueError
        Unknown suffix, unknown key or out-of-range value.

    Examples
    --------
    >>> config = load_config("configs/dam_break.yaml", verbose=False)
    """
    filepath = Path(filename)
    if not filepath.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    reader = _READERS.get(filepath.suffix.lower())
    if reader is None:
        raise ValueError(
            f"Unsupported config file format: {filepath.suffix}. "
            f"Use one of {', '.join(sorted(_READERS))}"
        )

    values = flatten_config(reader(filepath))
    values.update(overrides)

    try:
        return SystemConfig(**values)
    except ValueError as e:
        raise ValueError(f"Configuration validation failed for {filepath}: {e}") from e


def flatten_config(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a sectioned config mapping onto flat SystemConfig field names.

    ``{'fluid': {'h': 0.05, 'sigma': 50.0}}`` becomes
    ``{'smoothing_length': 0.05, 'surface_tension': 50.0}``. Keys without an
    alias keep their name, so SystemConfig reports anything it does not know.
    """
    flat = {}
    for key, value in config_dict.items():
        if not isinstance(value, dict):
            flat[key] = value
            continue
        aliases = FIELD_MAPPINGS.get(key)
        if aliases is None:
            flat.update(flatten_config(value))
            continue
        for subkey, subvalue in value.items():
            flat[aliases.get(subkey, subkey)] = subvalue
    return flat


def _sectioned(config: SystemConfig) -> Dict[str, Dict[str, Any]]:
    """Group the config fields by file section, using canonical names."""
    values = config.model_dump()
    sections: Dict[str, Dict[str, Any]] = {}
    for section, mapping in FIELD_MAPPINGS.items():
        fields: List[str] = []
        for field in mapping.values():
            if field not in fields:
                fields.append(field)
        sections[section] = {field: values[field] for field in fields}
    return sections


def save_config(config: SystemConfig, filename: Union[str, Path]) -> None:
    """
    Write a config in the sectioned layout read by ``load_config``.

    The suffix selects the format (.yaml, .yml or .json).
    """
    filepath = Path(filename)
    suffix = filepath.suffix.lower()
    if suffix not in _READERS:
        raise ValueError(f"Unsupported output format: {suffix}. Use .yaml or .json")

    sections = _sectioned(config)
    with open(filepath, 'w') as f:
        if suffix == '.json':
            json.dump(sections, f, indent=2)
        else:
            yaml.safe_dump(sections, f, default_flow_style=False, sort_keys=False)


def config_from_dict(config_dict: Dict[str, Any]) -> SystemConfig:
    """Validated SystemConfig from a nested or flat dictionary."""
    return SystemConfig(**flatten_config(config_dict))
