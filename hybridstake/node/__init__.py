"""
HybridStake Node
Configuration, time sources, persistence and the simulation driver.
"""

from hybridstake.node.clock import Clock, SystemClock, FixedClock, NtpClock
from hybridstake.node.config import SimulationConfig, EngineConfig, setup_logging

__all__ = [
    "Clock",
    "SystemClock",
    "FixedClock",
    "NtpClock",
    "SimulationConfig",
    "EngineConfig",
    "setup_logging",
]
