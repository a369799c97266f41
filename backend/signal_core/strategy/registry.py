"""Strategy registry for discovering strategy rules.

Usage:
    @register_strategy("my_strategy", group=GENERIC)
    def my_strategy(window: StrategyInput) -> list[Trigger]:
        ...

    rules = strategies_in(GENERIC)
    names = list_strategies()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from signal_core.strategy.protocol import StrategyRule

logger = logging.getLogger(__name__)

# Strategy groups
GENERIC = "generic"  # runs for every symbol
EXTENDED = "extended"  # runs for privileged symbols only

_VALID_GROUPS = (GENERIC, EXTENDED)


@dataclass(frozen=True)
class RegisteredStrategy:
    name: str
    group: str
    rule: StrategyRule


# Global registry: strategy_name -> entry (insertion order = evaluation order)
_REGISTRY: dict[str, RegisteredStrategy] = {}


def register_strategy(name: str, group: str = GENERIC):
    """Decorator to register a strategy rule under a given name.

    Args:
        name: Unique strategy name (also the key of the weight table).
        group: GENERIC or EXTENDED.

    Returns:
        Decorator that registers the rule and returns it unchanged.

    Raises:
        ValueError: If the name is already registered or the group is unknown.
    """
    if group not in _VALID_GROUPS:
        raise ValueError(f"group must be one of {_VALID_GROUPS}, got '{group}'")

    def decorator(rule):
        if name in _REGISTRY:
            raise ValueError(
                f"Strategy '{name}' is already registered by {_REGISTRY[name].rule.__name__}"
            )
        _REGISTRY[name] = RegisteredStrategy(name=name, group=group, rule=rule)
        logger.debug("Registered strategy: %s (%s) -> %s", name, group, rule.__name__)
        return rule

    return decorator


def get_strategy(name: str) -> RegisteredStrategy:
    """Get a registered strategy by name.

    Raises:
        KeyError: If no strategy is registered under the given name.
    """
    entry = _REGISTRY.get(name)
    if entry is None:
        available = ", ".join(sorted(_REGISTRY.keys())) or "(none)"
        raise KeyError(f"Unknown strategy '{name}'. Available: {available}")
    return entry


def strategies_in(group: str) -> list[RegisteredStrategy]:
    """Registered strategies of one group, in registration order."""
    return [entry for entry in _REGISTRY.values() if entry.group == group]


def list_strategies() -> list[str]:
    """Return a sorted list of registered strategy names."""
    return sorted(_REGISTRY.keys())
