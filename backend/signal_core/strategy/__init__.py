"""Strategy rules and candidate generation.

Public API:
- StrategyInput / Trigger / StrategyRule: rule interface
- register_strategy: Decorator to register a rule under a strategy name
- get_strategy / strategies_in / list_strategies: registry lookups
- CandidateGenerator: turns rule triggers into weighted SignalCandidates

Importing this package auto-registers all built-in rules.
"""

from signal_core.strategy.protocol import StrategyInput, StrategyRule, Trigger
from signal_core.strategy.registry import (
    EXTENDED,
    GENERIC,
    RegisteredStrategy,
    get_strategy,
    list_strategies,
    register_strategy,
    strategies_in,
)

# Import built-in rules to trigger auto-registration (order = evaluation order)
import signal_core.strategy.generic  # noqa: F401
import signal_core.strategy.extended  # noqa: F401

from signal_core.strategy.candidates import CandidateGenerator

__all__ = [
    "StrategyInput",
    "StrategyRule",
    "Trigger",
    "EXTENDED",
    "GENERIC",
    "RegisteredStrategy",
    "get_strategy",
    "list_strategies",
    "register_strategy",
    "strategies_in",
    "CandidateGenerator",
]
