#!/usr/bin/env python3
"""Run a home hub with the sensor simulator and print periodic summaries.

Connects to ``HOMEHUB_BROKER_URL`` (default: in-process loopback bus), starts
the synthetic sensors and the automation engine, and prints the current
readings every few seconds until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from homehub import Channel, HomeHub, HubConfig, HubError  # noqa: E402
from homehub.models import CurrentWeather, EnergyPayload, TemperaturePayload  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the home hub with simulated sensors.",
    )
    parser.add_argument(
        "--broker",
        default=None,
        help="Bus endpoint, e.g. mqtt://localhost:1883 (default: HOMEHUB_BROKER_URL or memory://local).",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--report-seconds",
        type=float,
        default=5.0,
        help="Print a state summary every N seconds.",
    )
    parser.add_argument(
        "--no-simulator",
        action="store_true",
        help="Do not start the synthetic sensor generators.",
    )
    parser.add_argument(
        "--arm",
        action="store_true",
        help="Arm the alarm after connecting.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_summary(hub: HomeHub) -> None:
    state = hub.snapshot()
    temperature = state[Channel.TEMPERATURE]
    weather = state[Channel.WEATHER]
    energy = state[Channel.ENERGY]
    assert isinstance(temperature, TemperaturePayload)
    assert isinstance(weather, CurrentWeather)
    assert isinstance(energy, EnergyPayload)

    print("[hub] Summary")
    print(f"[hub]   temperature : {temperature.temperature}")
    print(f"[hub]   weather     : {weather.condition} {weather.temp} wind={weather.wind_speed}")
    print(f"[hub]   power_w     : {energy.watts}  total_kwh={hub.energy.total_consumption_kwh()}")
    print(f"[hub]   alarm       : {hub.alarm.mode}")
    for entry in hub.automation.log()[:1]:
        print(f"[hub]   automation  : {entry.message}")
    for entry in hub.activity.entries()[:1]:
        print(f"[hub]   activity    : [{entry.type}] {entry.message}")


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.broker:
        overrides["broker_url"] = args.broker
    if args.no_simulator:
        overrides["simulator_enabled"] = False
    config = HubConfig.from_env(**overrides)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)
    if args.duration > 0:
        loop.call_later(args.duration, stop.set)

    try:
        async with HomeHub(config) as hub:
            print(f"[hub] Connected to {config.broker_url}")
            if args.arm:
                hub.arm_alarm()
            while not stop.is_set():
                try:
                    await asyncio.wait_for(stop.wait(), timeout=args.report_seconds)
                except TimeoutError:
                    _print_summary(hub)
    except HubError as exc:
        print(f"[hub] Failed: {exc}", file=sys.stderr)
        return 2
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(_main())
