# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Voxgig Archetype: casting
# =========================
#
# Coerce a single value to a declared type. Primitive kinds are named by
# string tags; any other declared type is a constructible kind: values
# that are already instances pass through, anything else is handed to
# the type's constructor.


from typing import *
import math

from .error import ArchetypeError, CastError
from .struct import (
    UNDEF,
    isnode,
    typify,
)


# Primitive type tags.
S_string = 'string'
S_number = 'number'
S_boolean = 'boolean'
S_any = 'any'

TRUTHY = ('1', 'true', 'yes')
FALSY = ('0', 'false', 'no')


def cast_string(v: Any) -> Any:
    if isinstance(v, bool):
        return 'true' if v else 'false'

    # Objects with neither their own str nor repr have no textual form.
    kind = type(v)
    plain = kind.__str__ is object.__str__ and kind.__repr__ is object.__repr__

    if isnode(v) or isinstance(v, (tuple, set)) or plain:
        raise CastError(f'Could not cast {v!r} to string')

    return str(v)


def cast_number(v: Any) -> Any:
    if isinstance(v, bool):
        return 1 if v else 0

    if isinstance(v, str):
        s = v.strip()
        try:
            return int(s)
        except ValueError:
            pass
        try:
            out = float(s)
        except ValueError:
            raise CastError(f'Could not cast "{v}" to number') from None
    else:
        try:
            out = float(v)
        except (TypeError, ValueError):
            raise CastError(f'Could not cast {v!r} to number') from None

    if math.isnan(out):
        raise CastError(f'Could not cast "{v}" to number')

    return out


def cast_boolean(v: Any) -> Any:
    s = str(v)
    if s in TRUTHY:
        return True
    if s in FALSY:
        return False
    raise CastError(f'Could not cast "{v}" to boolean')


def cast_any(v: Any) -> Any:
    return v


CAST_PRIMITIVES = {
    S_string: cast_string,
    S_number: cast_number,
    S_boolean: cast_boolean,
    S_any: cast_any,
}


def isinstance_of(v: Any, kind: str) -> bool:
    "Value is already of the primitive kind, so needs no casting."
    if S_string == kind:
        return isinstance(v, str)
    if S_number == kind:
        return (isinstance(v, (int, float)) and not isinstance(v, bool)
                and not (isinstance(v, float) and math.isnan(v)))
    if S_boolean == kind:
        return isinstance(v, bool)
    return S_any == kind


def to(v: Any, kind: Any) -> Any:
    """
    Cast `v` to `kind`, a primitive tag or a constructible type.
    UNDEF is never cast. Raises CastError on failure.
    """
    if isinstance(kind, str):
        if kind not in CAST_PRIMITIVES:
            raise CastError(f'"{kind}" is not a valid primitive type')
        if UNDEF is v or isinstance_of(v, kind):
            return v
        caster = CAST_PRIMITIVES[kind]
        name = kind

    elif UNDEF is v or (isinstance(kind, type) and isinstance(v, kind)):
        return v

    else:
        caster = kind
        name = getattr(kind, '__name__', repr(kind))

    try:
        return caster(v)
    except ArchetypeError:
        raise
    except Exception as err:
        raise CastError(f'Could not cast {v!r} to {name}: {err}') from err


def match_type(handlers: Dict[str, Callable[[Any], Any]]) -> Callable[[Any], Any]:
    """
    Build a function that applies the handler registered for the kind of
    its argument (see `typify`), and returns other values unchanged.
    """
    def matcher(v: Any) -> Any:
        handler = handlers.get(typify(v))
        if handler is None:
            return v
        return handler(v)

    return matcher


__all__ = [
    'CAST_PRIMITIVES',
    'S_any',
    'S_boolean',
    'S_number',
    'S_string',
    'match_type',
    'to',
]
