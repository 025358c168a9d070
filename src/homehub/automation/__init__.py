"""Weather-driven automation rules."""

from homehub.automation.actions import Command, command_for
from homehub.automation.conditions import condition_matches, schedule_allows
from homehub.automation.engine import DEFAULT_RULES, AutomationEngine

__all__ = [
    "DEFAULT_RULES",
    "AutomationEngine",
    "Command",
    "command_for",
    "condition_matches",
    "schedule_allows",
]
