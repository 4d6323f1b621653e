"""Adaptive polling core: clock, pulse controller, dispatcher, loop, archival."""

from .archival import ArchivalTrigger
from .clock import Clock, TimePoint
from .dispatcher import CycleContext, StatusCode, StatusDispatcher
from .pulse import PulseConfig, PulseController, PulseState
from .scheduler import LoopState, SchedulingLoop

__all__ = [
    "ArchivalTrigger",
    "Clock",
    "TimePoint",
    "CycleContext",
    "StatusCode",
    "StatusDispatcher",
    "PulseConfig",
    "PulseController",
    "PulseState",
    "LoopState",
    "SchedulingLoop",
]
