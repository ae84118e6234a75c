# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Voxgig Archetype: paths and field descriptors
# =============================================
#
# A compiled schema is a flat table from Path to Field. A Path is a
# tuple of segments: field names, array indexes (real document paths
# only) and the WILDCARD segment (schema paths only), which stands for
# every element of an array.


from typing import *
import inspect

from .error import SchemaError
from .struct import (
    UNDEF,
    S_DT,
    clone,
    isfunc,
)


# Reserved marker for `$`-key descriptors, and the wildcard token.
S_DS = '$'

# Type tags accepted as aliases of the dict and list classes.
S_object = 'object'
S_array = 'array'

# Mutable literals that would be shared between documents if used as defaults.
MUTABLE_DEFAULTS = (dict, list, set, bytearray)


class Wildcard:
    """The array element segment of a schema path. There is only one."""

    __slots__ = ()

    def __str__(self) -> str:
        return S_DS

    def __repr__(self) -> str:
        return 'WILDCARD'

    def __copy__(self) -> 'Wildcard':
        return self

    def __deepcopy__(self, _memo: Any) -> 'Wildcard':
        return self

    def __reduce__(self):
        return 'WILDCARD'


WILDCARD = Wildcard()


class Path(tuple):
    """
    An immutable sequence of path segments. `str(path)` gives the dotted
    form, with WILDCARD written as `$`.
    """

    def __new__(cls, parts: Iterable[Any] = ()) -> 'Path':
        return super().__new__(cls, parts)

    @classmethod
    def parse(cls, path: Any) -> 'Path':
        "Read a dotted string (`$` means WILDCARD) or a sequence of segments."
        if isinstance(path, Path):
            return path
        if isinstance(path, str):
            if path == '':
                return cls()
            return cls(WILDCARD if part == S_DS else part for part in path.split(S_DT))
        return cls(path)

    def child(self, key: Any) -> 'Path':
        return Path(tuple(self) + (key,))

    def schema_path(self) -> 'Path':
        "Replace array indexes with WILDCARD."
        return Path(WILDCARD if isinstance(part, int) and not isinstance(part, bool) else part
                    for part in self)

    def isprefix(self, other: 'Path') -> bool:
        "This path equals `other` or is one of its ancestors."
        return len(self) <= len(other) and tuple(other[:len(self)]) == tuple(self)

    def __str__(self) -> str:
        return S_DT.join(str(part) for part in self)

    def __repr__(self) -> str:
        return f'Path({str(self)!r})'


def invoke(fn: Callable, *args: Any) -> Any:
    """
    Call `fn` with as many leading arguments as it has required positional
    parameters, so that zero-argument factories (datetime.now, time.time)
    and one-argument functions of the document can both be used as defaults.
    """
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (ValueError, TypeError):
        # Builtins without a readable signature are treated as factories.
        return fn()

    if any(p.kind == p.VAR_POSITIONAL for p in params):
        return fn(*args)

    positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    num_params = len([p for p in params if p.kind in positional and p.default is p.empty])
    return fn(*args[:num_params])


class Field:
    """
    Descriptor of one schema path.

    `type` is a primitive tag, `dict` (object), `list` (array), a
    constructible class, or UNDEF for an inert field that is never cast.
    `required` and `default` may be literals or functions of the whole
    document. Any other keyword is kept as metadata.
    """

    MODIFIERS = ('required', 'default', 'validate', 'enum')

    def __init__(
            self,
            type: Any = UNDEF,
            required: Any = False,
            default: Any = UNDEF,
            validate: Optional[Callable] = UNDEF,
            enum: Optional[Sequence[Any]] = UNDEF,
            schema: Optional[Dict[str, Any]] = UNDEF,
            **meta: Any
    ) -> None:
        if isinstance(default, MUTABLE_DEFAULTS) and 0 < len(default):
            raise SchemaError(
                f'Default is a non-empty object `{default!r}`. Please make '
                '`default` a function that returns an object instead')

        if S_object == type:
            type = dict
        elif S_array == type:
            type = list

        self.type = type
        self.required = required
        self.default = default
        self.validate = validate
        self.enum = enum
        self.schema = schema
        self.meta = meta

    @classmethod
    def from_json(cls, node: Dict[str, Any]) -> 'Field':
        "Build a Field from the `$`-key form, e.g. {'$type': 'string', '$required': True}."
        props = {}
        for key, val in node.items():
            name = key[1:] if isinstance(key, str) and key.startswith(S_DS) else key
            props[name] = val
        return cls(**props)

    def copy(self, **changes: Any) -> 'Field':
        props = self.props()
        props.update(changes)
        return Field(**props)

    def with_modifiers(self, other: 'Field') -> 'Field':
        "This field's structure, carrying the modifiers and metadata of `other`."
        changes = {name: getattr(other, name) for name in self.MODIFIERS}
        changes.update(other.meta)
        return self.copy(**changes)

    def props(self) -> Dict[str, Any]:
        props = {
            'type': self.type,
            'required': self.required,
            'default': self.default,
            'validate': self.validate,
            'enum': self.enum,
            'schema': self.schema,
        }
        props.update(self.meta)
        return props

    def json(self) -> Dict[str, Any]:
        "The properties that are set, as a plain map."
        out = {}
        if UNDEF is not self.type:
            out['type'] = self.type
        if UNDEF is not self.schema:
            out['schema'] = self.schema
        if self.required:
            out['required'] = self.required
        for name in ('default', 'validate', 'enum'):
            if UNDEF is not getattr(self, name):
                out[name] = getattr(self, name)
        out.update(self.meta)
        return out

    def isrequired(self, doc: Any, schema: Any = UNDEF) -> bool:
        if isfunc(self.required):
            return bool(invoke(self.required, doc, schema))
        return bool(self.required)

    def default_value(self, doc: Any) -> Any:
        # Empty composite literals are copied so documents never share them.
        if isfunc(self.default):
            return invoke(self.default, doc)
        if isinstance(self.default, MUTABLE_DEFAULTS):
            return clone(self.default)
        return self.default

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Field):
            return NotImplemented
        return self.props() == other.props()

    def __repr__(self) -> str:
        return 'Field(' + ', '.join(f'{k}={v!r}' for k, v in self.json().items()) + ')'


class Group(dict):
    """
    An explicit nested object in a schema declaration. Unlike a plain
    map, a Group is never read as a `$`-key descriptor, so it may hold
    fields whose names start with `$`.
    """

    def __repr__(self) -> str:
        return f'Group({dict.__repr__(self)})'


__all__ = [
    'Field',
    'Group',
    'Path',
    'WILDCARD',
    'Wildcard',
    'invoke',
]
