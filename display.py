"""
Text rendering of module elements and words.

Rendering only consumes the engines' public surface (iteration, length and
the rule/ring bound to the element class), so it can be swapped out freely.

Module elements:
    - zero renders as the ring's own zero literal, or ``"0"`` without one
    - a single term is rendered bare, several are parenthesised and joined
      with ``" + "``
    - a unit term shows only its coefficient, a coefficient of one shows
      only the term, anything else is ``coefficient*term``

The alternate mode (``format(x, "#")``) drops the ``*`` between factors:
``(3.5*y + x*y)`` becomes ``(3.5y + xy)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from algebra_rules import UnitalAlgebraRule
from free_core import DisplayConfigError, FreeElement


@dataclass(frozen=True)
class DisplayConfig:
    """Separators and placeholders used when rendering."""
    plus: str = " + "
    times: str = "*"
    empty_word: str = "ε"
    zero_fallback: str = "0"

    def __post_init__(self) -> None:
        for name in ("plus", "times", "empty_word", "zero_fallback"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise DisplayConfigError(f"{name} must be str, got {type(value).__name__}")
        if not self.plus.strip():
            raise DisplayConfigError("plus must contain a visible separator")
        if not self.empty_word or not self.zero_fallback:
            raise DisplayConfigError("placeholders cannot be empty")


DEFAULT_DISPLAY = DisplayConfig()


def _render(x: Any, alternate: bool) -> str:
    if alternate and isinstance(x, FreeElement):
        return format(x, "#")
    return str(x)


def format_module(element, alternate: bool = False, config: Optional[DisplayConfig] = None) -> str:
    """Render a ``ModuleString`` as a sum of ``coefficient*term`` factors."""
    cfg = config or DEFAULT_DISPLAY
    cls = type(element)
    ring = cls.ring
    items = list(element)

    if not items:
        literal = ring.zero_literal()
        return literal if literal is not None else cfg.zero_fallback

    rule = cls.rule
    is_unit = rule.is_one if isinstance(rule, UnitalAlgebraRule) else None

    parts = []
    for r, t in items:
        if is_unit is not None and is_unit(t):
            parts.append(_render(r, alternate))
        elif ring.is_one(r):
            parts.append(_render(t, alternate))
        elif alternate:
            parts.append(_render(r, True) + _render(t, True))
        else:
            parts.append(f"{r}{cfg.times}{t}")

    body = cfg.plus.join(parts)
    if len(parts) > 1:
        return f"({body})"
    return body


def format_word(word, alternate: bool = False, config: Optional[DisplayConfig] = None) -> str:
    """Render a ``MonoidalString`` as its letters joined by ``*`` (juxtaposed in alternate mode)."""
    cfg = config or DEFAULT_DISPLAY
    if len(word) == 0:
        return cfg.empty_word
    sep = "" if alternate else cfg.times
    return sep.join(_render(c, alternate) for c in word)


__all__ = [
    "DisplayConfig",
    "DEFAULT_DISPLAY",
    "format_module",
    "format_word",
]
