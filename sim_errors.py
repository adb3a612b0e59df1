"""Errors raised by the simulation drivers."""


class ConfigurationError(ValueError):
    """Invalid parameters detected before a run starts."""


class SimulationError(RuntimeError):
    """A run could not be carried out as configured."""
