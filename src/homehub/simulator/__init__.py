"""Synthetic sensor generators for running without hardware."""

from homehub.simulator.runner import CHANNEL_TOPICS, SensorSimulator, SimulatedChannel

__all__ = [
    "CHANNEL_TOPICS",
    "SensorSimulator",
    "SimulatedChannel",
]
