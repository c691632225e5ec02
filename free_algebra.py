"""
Free algebraic constructions over an arbitrary base set and coefficient ring.

Two engines:
    ``ModuleString``   term -> coefficient maps (free modules, monoid rings,
                       free algebras)
    ``MonoidalString`` rewritten letter sequences (free monoids, free groups,
                       exponent-compressed monoids)

Both are parametrised by pluggable stateless rules (``algebra_rules``,
``monoid_rules``) whose capability markers decide which derived operations
(powers, units, inverses, commutators) are available.

Example:
    >>> x, y = FreeMonoid("x"), FreeMonoid("y")
    >>> p = FreeAlgebra.one() + x
    >>> str(p.commutator(FreeAlgebra.one() + y)) in {"(x*y + -1*y*x)", "(-1*y*x + x*y)"}
    True
"""

from algebra_rules import (
    AddRule,
    AlgebraRule,
    AssociativeAlgebraRule,
    CommutativeAlgebraRule,
    CommutativeMulRule,
    MulRule,
    UnitalAlgebraRule,
)
from coefficient_ring import NUMBER_RING, CoefficientRing, DtypeRing, NumberRing, ParentRing
from display import DEFAULT_DISPLAY, DisplayConfig, format_module, format_word
from free_core import (
    Capability,
    CapabilityError,
    CoefficientError,
    DisplayConfigError,
    FreeAlgebraError,
    FreeElement,
    TermLookupError,
    WordIndexError,
)
from module_string import FreeAlgebra, FreeModule, ModuleString, MonoidRing, TermCursor, TermHandle
from monoid_rules import (
    AssociativeMonoidRule,
    CommutativeMonoidRule,
    ConcatRule,
    DistributiveMonoidRule,
    FreeInv,
    FreePow,
    InvMonoidRule,
    InvRule,
    MonoidRule,
    PowRule,
)
from monoidal_string import FreeGroup, FreeMonoid, FreePowMonoid, MonoidalString
from repeated_squaring import repeated_squaring, repeated_squaring_inv

__version__ = "0.1.0"

__all__ = [
    # errors / capabilities
    "FreeAlgebraError",
    "TermLookupError",
    "WordIndexError",
    "CapabilityError",
    "CoefficientError",
    "DisplayConfigError",
    "Capability",
    "FreeElement",

    # coefficient rings
    "CoefficientRing",
    "NumberRing",
    "DtypeRing",
    "ParentRing",
    "NUMBER_RING",

    # algebra rules
    "AlgebraRule",
    "AssociativeAlgebraRule",
    "CommutativeAlgebraRule",
    "UnitalAlgebraRule",
    "AddRule",
    "MulRule",
    "CommutativeMulRule",

    # monoid rules
    "MonoidRule",
    "InvMonoidRule",
    "AssociativeMonoidRule",
    "CommutativeMonoidRule",
    "DistributiveMonoidRule",
    "ConcatRule",
    "InvRule",
    "PowRule",
    "FreeInv",
    "FreePow",

    # engines
    "ModuleString",
    "TermHandle",
    "TermCursor",
    "FreeModule",
    "MonoidRing",
    "FreeAlgebra",
    "MonoidalString",
    "FreeMonoid",
    "FreeGroup",
    "FreePowMonoid",

    # exponentiation
    "repeated_squaring",
    "repeated_squaring_inv",

    # display
    "DisplayConfig",
    "DEFAULT_DISPLAY",
    "format_module",
    "format_word",
]
