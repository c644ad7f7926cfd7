from __future__ import annotations

import types
import typing
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from ..models.composites import NAMED_COLORS, Color, Vector2, Vector3, Vector4
from ..models.field_mapping import CellConverter

"""Type conversion pipeline: raw cell text -> typed value.

Resolution order for a non-empty cell:
1. the field's custom converter, when it reports it can handle the type
2. a converter registered on the pipeline for the target type
3. built-in parsers (str, int, float, bool, Decimal, datetime, date, Enum by
   name, Optional[T]) and, only with auto_convert, composite types assembled
   from a delimited cell (Vector2/3/4, Color, list[T], tuple[T, ...])
4. otherwise ConversionError

Empty or whitespace-only cells convert to the type's default value.
Every failure surfaces as ConversionError so the row parser can turn it into
a diagnostic.
"""

__all__ = [
    "ConversionError",
    "ConversionPipeline",
    "default_for",
    "default_pipeline",
    "type_name",
]

COMPOSITE_DELIMITER = ","

_TRUE_WORDS = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off", "disabled"})


class ConversionError(Exception):
    """Raised when a cell cannot be converted to the requested type."""


def type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or str(tp).replace("typing.", "")


def _unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Return (inner type, True) for Optional[T] / T | None, else (tp, False)."""
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = typing.get_args(tp)
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1 and len(non_none) < len(args):
            return non_none[0], True
    return tp, False


def _is_enum(tp: Any) -> bool:
    return isinstance(tp, type) and typing.get_origin(tp) is None and issubclass(tp, Enum)


def default_for(tp: Any) -> Any:
    """Default value substituted for empty or failed cells."""
    inner, nullable = _unwrap_optional(tp)
    if nullable or tp is Any:
        return None
    if tp in _SCALAR_DEFAULTS:
        return _SCALAR_DEFAULTS[tp]
    origin = typing.get_origin(tp)
    if origin in (list, tuple, set, frozenset):
        return origin()
    if isinstance(tp, type):
        if issubclass(tp, Enum):
            return next(iter(tp), None)
        try:
            return tp()
        except Exception:
            return None
    return None


_SCALAR_DEFAULTS: dict[Any, Any] = {
    str: "",
    int: 0,
    float: 0.0,
    bool: False,
    Decimal: Decimal(0),
    datetime: datetime.min,
    date: date.min,
}


def _parse_bool(raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"'{raw}' is not a boolean")


def _parse_decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw.strip())
    except InvalidOperation as e:
        raise ValueError(f"'{raw}' is not a decimal") from e


def _components(raw: str, minimum: int) -> list[float]:
    parts = [p.strip() for p in raw.split(COMPOSITE_DELIMITER)]
    if len(parts) < minimum:
        raise ValueError(f"expected {minimum} components, got {len(parts)}")
    return [float(p) for p in parts]


def _parse_color(raw: str) -> Color:
    value = raw.strip()
    if value.startswith("#"):
        return Color.from_hex(value)
    if COMPOSITE_DELIMITER in value:
        parts = _components(value, 3)
        return Color(*parts[:4])
    named = NAMED_COLORS.get(value.lower())
    if named is None:
        raise ValueError(f"unknown colour '{raw}'")
    return named


_BUILTIN_PARSERS: dict[Any, Callable[[str], Any]] = {
    str: lambda raw: raw,
    int: lambda raw: int(raw.strip()),
    float: lambda raw: float(raw.strip()),
    bool: _parse_bool,
    Decimal: _parse_decimal,
    datetime: lambda raw: datetime.fromisoformat(raw.strip()),
    date: lambda raw: date.fromisoformat(raw.strip()),
}

_COMPOSITE_PARSERS: dict[Any, Callable[[str], Any]] = {
    Vector2: lambda raw: Vector2(*_components(raw, 2)[:2]),
    Vector3: lambda raw: Vector3(*_components(raw, 3)[:3]),
    Vector4: lambda raw: Vector4(*_components(raw, 4)[:4]),
    Color: _parse_color,
}


class ConversionPipeline:
    """Converts raw cells using custom converters and built-in rules."""

    def __init__(self) -> None:
        self._converters: dict[Any, CellConverter] = {}
        self._parsers: dict[Any, Callable[[str], Any]] = dict(_BUILTIN_PARSERS)
        self._composites: dict[Any, Callable[[str], Any]] = dict(_COMPOSITE_PARSERS)

    def register_converter(self, target_type: Any, converter: CellConverter) -> None:
        """Use ``converter`` for every field of ``target_type``."""
        self._converters[target_type] = converter

    def register_parser(self, target_type: Any, parser: Callable[[str], Any]) -> None:
        """Register a plain parse function as a built-in rule for a type."""
        self._parsers[target_type] = parser

    def is_composite(self, target_type: Any) -> bool:
        inner, _ = _unwrap_optional(target_type)
        return inner in self._composites or typing.get_origin(inner) in (list, tuple, set, frozenset)

    def convert(
        self,
        raw: str | None,
        target_type: Any,
        auto_convert: bool = False,
        converter: CellConverter | None = None,
    ) -> Any:
        """Convert one cell.

        Raises:
            ConversionError: when no rule applies or the applicable rule fails
        """
        if raw is None or not raw.strip():
            return default_for(target_type)
        try:
            return self._convert(raw, target_type, auto_convert, converter)
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(
                f"cannot convert '{raw}' to {type_name(target_type)}: {e}"
            ) from e

    def _convert(
        self,
        raw: str,
        target_type: Any,
        auto_convert: bool,
        converter: CellConverter | None,
    ) -> Any:
        if converter is not None and converter.can_convert(target_type):
            return converter.convert(raw, target_type)
        registered = self._converters.get(target_type)
        if registered is not None:
            return registered.convert(raw, target_type)

        inner, nullable = _unwrap_optional(target_type)
        if nullable:
            return self._convert(raw, inner, auto_convert, converter)
        if target_type is Any:
            return raw

        parser = self._parsers.get(target_type)
        if parser is not None:
            return parser(raw)
        if _is_enum(target_type):
            return self._convert_enum(raw, target_type)

        if self.is_composite(target_type):
            if not auto_convert:
                raise ConversionError(
                    f"{type_name(target_type)} is a composite type; declare the column with auto_convert"
                )
            composite = self._composites.get(target_type)
            if composite is not None:
                return composite(raw)
            return self._convert_sequence(raw, target_type)

        raise ConversionError(f"no conversion available for {type_name(target_type)}")

    @staticmethod
    def _convert_enum(raw: str, enum_type: type[Enum]) -> Enum:
        name = raw.strip()
        try:
            return enum_type[name]
        except KeyError:
            raise ConversionError(
                f"'{name}' is not a member of {enum_type.__name__}"
            ) from None

    def _convert_sequence(self, raw: str, target_type: Any) -> Any:
        origin = typing.get_origin(target_type)
        args = typing.get_args(target_type)
        parts = [p.strip() for p in raw.split(COMPOSITE_DELIMITER)]
        if origin is tuple and args and args[-1] is not Ellipsis:
            if len(parts) != len(args):
                raise ConversionError(f"expected {len(args)} items, got {len(parts)}")
            return tuple(self.convert(p, t) for p, t in zip(parts, args, strict=True))
        element_type = args[0] if args else str
        return origin(self.convert(p, element_type) for p in parts)


default_pipeline = ConversionPipeline()
