"""Engine configuration loaded from engine.yaml.

Supports overriding any EngineConfig field, e.g.:

    privileged_symbols: [GOLD, EURUSD]
    scalp_daily_cap: 2
    weights:
      breakout: 35

A partial ``weights`` mapping is merged over the default table.
No YAML file = built-in defaults.
"""

import logging
from pathlib import Path

import yaml

from signal_core.models.config import DEFAULT_WEIGHTS, EngineConfig

logger = logging.getLogger(__name__)

_DEFAULT_PATH = Path(__file__).parent.parent / "engine.yaml"


def load_engine_config(path: Path | str | None = None) -> EngineConfig:
    """Load engine config from a YAML file.

    Falls back to defaults if the file doesn't exist.

    Raises:
        ValueError: If the file is not a mapping or fails validation.
    """
    config_path = Path(path) if path else _DEFAULT_PATH

    if not config_path.exists():
        logger.info("No engine.yaml found at %s, using defaults", config_path)
        return EngineConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} must contain a mapping, got {type(raw).__name__}")

    if "weights" in raw:
        raw["weights"] = {**DEFAULT_WEIGHTS, **(raw["weights"] or {})}

    config = EngineConfig(**raw)
    logger.info(
        "Loaded engine config: %d strategies, %d privileged symbols, scalp cap %d on %s",
        len(config.weights),
        len(config.privileged_symbols),
        config.scalp_daily_cap,
        config.scalp_cap_symbol,
    )
    return config
