"""Topic pattern matching.

Patterns follow MQTT conventions loosely:

* an exact topic matches only itself;
* ``+`` matches exactly one level;
* a trailing ``#`` matches any topic sharing the pattern's prefix up to
  (not including) the ``#``. ``home/energy/#`` therefore matches
  ``home/energy/current`` but not ``home/energy``.
"""

from __future__ import annotations

from homehub.exceptions import HubValidationError


def validate_pattern(pattern: str) -> str:
    if not pattern:
        raise HubValidationError("Topic pattern must be non-empty")
    if "#" in pattern[:-1]:
        raise HubValidationError(f"'#' is only allowed at the end of a pattern: {pattern!r}")
    return pattern


def validate_topic(topic: str) -> str:
    """Concrete topics (publish targets) may not contain wildcards."""
    if not topic:
        raise HubValidationError("Topic must be non-empty")
    if "#" in topic or "+" in topic:
        raise HubValidationError(f"Cannot publish to a wildcard topic: {topic!r}")
    return topic


def _level_matches(pattern_level: str, topic_level: str) -> bool:
    return pattern_level == "+" or pattern_level == topic_level


def topic_matches(pattern: str, topic: str) -> bool:
    """Return ``True`` when *topic* is routed to a subscription on *pattern*."""
    if pattern == topic:
        return True

    topic_levels = topic.split("/")

    if pattern.endswith("#"):
        prefix_levels = pattern[:-1].split("/")
        if len(topic_levels) < len(prefix_levels):
            return False
        *head, tail = prefix_levels
        if not all(_level_matches(p, t) for p, t in zip(head, topic_levels, strict=False)):
            return False
        # ``tail`` is whatever sits between the last separator and ``#``;
        # usually empty, so any level satisfies it.
        return tail == "+" or topic_levels[len(head)].startswith(tail)

    pattern_levels = pattern.split("/")
    if len(pattern_levels) != len(topic_levels):
        return False
    return all(_level_matches(p, t) for p, t in zip(pattern_levels, topic_levels, strict=True))


def broker_filter(pattern: str) -> str:
    """Translate a local pattern into a valid MQTT subscription filter.

    MQTT only accepts ``#`` as a whole level, so a partial-level prefix such
    as ``home/ener#`` widens to ``home/#``; local matching narrows it again.
    """
    if not pattern.endswith("#") or pattern == "#" or pattern.endswith("/#"):
        return pattern
    parent = pattern[:-1].rpartition("/")[0]
    return f"{parent}/#" if parent else "#"
