"""
Elevator Simulator Configuration File

This file contains all configuration parameters for the elevator simulator,
using configurable settings instead of hardcoded constants
"""
import copy
import logging
from typing import Dict, Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator


# Default elevator floor configuration
DEFAULT_BOTTOM_FLOOR = 1
DEFAULT_TOP_FLOOR = 10

# Timer durations, in abstract time units
TRANSIT_DURATION = 5    # Time to travel from one floor to the next
BOARDING_DURATION = 5   # Time the door stays open at a stop

# Wall-clock length of one time unit (seconds), used by the event loop only
TIME_UNIT_SECONDS = 1.0

# Logging configuration
LOG_LEVEL = logging.INFO
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Complete default configuration
DEFAULT_CONFIG = {
    "elevator": {
        "bottom_floor": DEFAULT_BOTTOM_FLOOR,
        "top_floor": DEFAULT_TOP_FLOOR
    },
    "timing": {
        "transit": TRANSIT_DURATION,
        "boarding": BOARDING_DURATION,
        "time_unit_seconds": TIME_UNIT_SECONDS
    },
    "logging": {
        "level": LOG_LEVEL,
        "format": LOG_FORMAT
    }
}


def get_config() -> Dict[str, Any]:
    """
    Get elevator simulator configuration

    Returns:
        Dictionary containing complete configuration information
    """
    return copy.deepcopy(DEFAULT_CONFIG)


class ElevatorSettings(BaseModel):
    """
    Validated, immutable construction parameters for one elevator.

    Attributes:
        bottom_floor: Lowest floor served
        top_floor: Highest floor served
        transit_duration: Time units to move one floor
        boarding_duration: Time units the door stays open
        time_unit_seconds: Wall-clock seconds per time unit
    """
    model_config = ConfigDict(frozen=True)

    bottom_floor: int = DEFAULT_BOTTOM_FLOOR
    top_floor: int = DEFAULT_TOP_FLOOR
    transit_duration: float = TRANSIT_DURATION
    boarding_duration: float = BOARDING_DURATION
    time_unit_seconds: float = TIME_UNIT_SECONDS

    @model_validator(mode='after')
    def validate_ranges(self) -> 'ElevatorSettings':
        """
        Validate floor range and timer durations.

        Raises:
            ValueError: If the floor range is empty or a duration is not positive
        """
        if self.top_floor <= self.bottom_floor:
            raise ValueError("top_floor must be greater than bottom_floor")
        for name in ("transit_duration", "boarding_duration", "time_unit_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        return self


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> ElevatorSettings:
    """
    Build elevator settings from the default configuration.

    Args:
        overrides: Flat mapping of ElevatorSettings field names to values

    Returns:
        The validated settings

    Raises:
        pydantic.ValidationError: If the resulting settings are invalid
    """
    config = get_config()
    values = {
        "bottom_floor": config["elevator"]["bottom_floor"],
        "top_floor": config["elevator"]["top_floor"],
        "transit_duration": config["timing"]["transit"],
        "boarding_duration": config["timing"]["boarding"],
        "time_unit_seconds": config["timing"]["time_unit_seconds"],
    }
    if overrides:
        values.update(overrides)
    return ElevatorSettings(**values)


def configure_logging(level: Optional[int] = None) -> None:
    """
    Configure root logging for command line entry points.

    Args:
        level: Logging level, defaults to the configured level
    """
    config = get_config()
    logging.basicConfig(level=level if level is not None else config["logging"]["level"],
                        format=config["logging"]["format"])
