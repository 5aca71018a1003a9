"""
Data Types - Port types and literal widgets.

This module defines the values that describe node ports:
- PortType: Closed enumeration of the types that flow through connections
- Widget: Tagged union of literal-editing widgets (text, number, slider,
  toggle, combo)
- LiteralValue: Type alias for values a widget can hold
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias, Union


class PortType(Enum):
    """
    Enumeration of data types that can flow through node connections.

    Each input/output port has a PortType that determines which
    connections are valid.
    """
    # Media types
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    MODEL3D = "model3d"

    # Accepts anything
    ANY = "any"

    # Interchange-only types (node-graph ecosystem)
    LATENT = "latent"
    MODEL = "model"
    CLIP = "clip"
    VAE = "vae"
    CONDITIONING = "conditioning"
    MASK = "mask"
    CONTROL_NET = "control_net"
    INT = "int"
    FLOAT = "float"
    BOOLEAN = "boolean"
    COMBO = "combo"

    def is_compatible_with(self, other: PortType) -> bool:
        """Check if this type can connect to another type."""
        if self == PortType.ANY or other == PortType.ANY:
            return True
        return self == other

    @classmethod
    def parse(cls, value: str | PortType | None) -> PortType:
        """Parse a tag string, falling back to ANY for unknown or missing tags."""
        if isinstance(value, PortType):
            return value
        if not value:
            return cls.ANY
        try:
            return cls(value)
        except ValueError:
            return cls.ANY


# Type alias for literal values held by widgets
LiteralValue: TypeAlias = str | int | float | bool | None


@dataclass(frozen=True)
class TextWidget:
    """Free text entry. ``multiline`` selects a text area."""
    default: str = ""
    multiline: bool = False

    @property
    def kind(self) -> str:
        return "textarea" if self.multiline else "text"

    def coerce(self, value: Any) -> str:
        if value is None:
            return self.default
        return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class NumberWidget:
    """Numeric spinner with optional bounds."""
    default: float = 0
    min_value: float | None = None
    max_value: float | None = None
    step: float = 1
    integer: bool = True

    @property
    def kind(self) -> str:
        return "number"

    def coerce(self, value: Any) -> int | float:
        return _clamp_number(value, self.default, self.min_value, self.max_value, self.integer)


@dataclass(frozen=True)
class SliderWidget:
    """Slider over a bounded float range."""
    default: float = 0.0
    min_value: float = 0.0
    max_value: float = 1.0
    step: float = 0.01

    @property
    def kind(self) -> str:
        return "slider"

    def coerce(self, value: Any) -> float:
        return _clamp_number(value, self.default, self.min_value, self.max_value, False)


@dataclass(frozen=True)
class ToggleWidget:
    """Boolean checkbox."""
    default: bool = False

    @property
    def kind(self) -> str:
        return "toggle"

    def coerce(self, value: Any) -> bool:
        if value is None:
            return self.default
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)


@dataclass(frozen=True)
class ComboWidget:
    """Dropdown with a fixed option list."""
    options: tuple[str, ...] = field(default_factory=tuple)
    default: str | None = None

    def __post_init__(self):
        if self.default is None and self.options:
            object.__setattr__(self, "default", self.options[0])

    @property
    def kind(self) -> str:
        return "combo"

    def coerce(self, value: Any) -> str | None:
        if value is None:
            return self.default
        value = str(value)
        if self.options and value not in self.options:
            return self.default
        return value


Widget: TypeAlias = Union[TextWidget, NumberWidget, SliderWidget, ToggleWidget, ComboWidget]


def _clamp_number(
    value: Any,
    default: float,
    min_value: float | None,
    max_value: float | None,
    integer: bool,
) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        number = default
    elif isinstance(value, str):
        try:
            number = int(value) if integer else float(value)
        except ValueError:
            try:
                number = float(value)
            except ValueError:
                number = default
    else:
        number = value
    if isinstance(number, float) and not math.isfinite(number):
        number = default
    if integer and not isinstance(number, int):
        number = int(number)
    # Integers are compared as ints so large seeds stay exact.
    if min_value is not None and number < min_value:
        number = min_value
    if max_value is not None and number > max_value:
        number = max_value
    return int(number) if integer else float(number)


def widget_to_dict(widget: Widget) -> dict[str, Any]:
    """Serialize a widget for snapshots."""
    data: dict[str, Any] = {"type": widget.kind, "default": widget.default}
    if isinstance(widget, (NumberWidget, SliderWidget)):
        data["min"] = widget.min_value
        data["max"] = widget.max_value
        data["step"] = widget.step
    if isinstance(widget, ComboWidget):
        data["options"] = list(widget.options)
    return data

