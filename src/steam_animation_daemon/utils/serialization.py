"""
Serialization utilities - enum and config conversion for YAML persistence

Provides bidirectional conversion between:
- Enums ↔ Strings (AnimationType by name, RandomizeMode by value)
- DaemonConfig ↔ plain dicts (what yaml.safe_dump / safe_load understand)
"""

from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

from steam_animation_daemon.models.config import DaemonConfig
from steam_animation_daemon.models.enums import RandomizeMode

T = TypeVar('T', bound=Enum)


class Serializer:
    """Central enum and config serialization"""

    # ========================================================================
    # ENUM SERIALIZATION
    # ========================================================================

    @staticmethod
    def enum_to_str(value: Optional[Enum]) -> Optional[str]:
        """Convert any enum to string name"""
        return value.name if value else None

    @staticmethod
    def str_to_enum(value: str, enum_type: Type[T]) -> T:
        """Convert string name (case-insensitive) to enum, raise ValueError if invalid"""
        try:
            return enum_type[value.upper()]
        except (KeyError, AttributeError):
            raise ValueError(f"Invalid {enum_type.__name__}: {value}")

    @staticmethod
    def value_to_enum(value: Any, enum_type: Type[T]) -> T:
        """Convert enum value ("per_boot") or name ("PER_BOOT") to enum"""
        if isinstance(value, enum_type):
            return value
        try:
            return enum_type(value)
        except ValueError:
            return Serializer.str_to_enum(value, enum_type)

    # ========================================================================
    # CONFIG SERIALIZATION
    # ========================================================================

    @staticmethod
    def config_to_dict(config: DaemonConfig) -> Dict[str, Any]:
        """
        Serialize config to a YAML-safe dict

        Paths become strings, RandomizeMode becomes its lowercase value.
        """
        result: Dict[str, Any] = {}
        for f in fields(config):
            value = getattr(config, f.name)
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, RandomizeMode):
                value = value.value
            elif isinstance(value, list):
                value = list(value)
            result[f.name] = value
        return result
