"""Accelerated wearable device simulator."""

__all__ = [
    "config","rng","events","scheduler","wallclock","device_clock","archetypes","planner",
    "steps","state_machine","device","simulator","export","validate","log"
]
