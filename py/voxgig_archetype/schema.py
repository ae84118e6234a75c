# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Voxgig Archetype: schema compiler
# =================================
#
# Flatten a nested schema declaration into a table from Path to Field.
# Every object node and array node gets its own entry as well as
# entries for its children; array elements share a single WILDCARD
# entry. The schema algebra methods (path, omit, pick, transform)
# edit a copy of the declaration and compile it again, so the table
# and the declaration never diverge.
#
# Declaration nodes:
# - 'string', 'number', 'boolean', 'any', or a class: a typed leaf.
# - Field(...) or {'$type': ..., '$required': ...}: a leaf with modifiers.
# - Group({...}) or a plain map: a nested object.
# - [elem]: an array of elem; [] is an array of anything.


from typing import *
import logging

from .cast import S_any
from .error import SchemaError
from .path import (
    S_DS,
    WILDCARD,
    Field,
    Group,
    Path,
)
from .struct import (
    UNDEF,
    clone,
    getprop,
    islist,
    ismap,
)
from .model import model
from .unmarshal import unmarshal


logger = logging.getLogger(__name__)

S_type = S_DS + 'type'


def isdescriptor(node: Any) -> bool:
    "A plain map in `$`-key form describes a leaf rather than a nested object."
    if not ismap(node) or isinstance(node, Group):
        return False
    if S_type in node:
        return True
    for key in node:
        return isinstance(key, str) and key.startswith(S_DS)
    return False


def asfield(node: Any) -> Field:
    "The Field a single declaration node describes."
    if isinstance(node, Field):
        return node.copy()
    if isdescriptor(node):
        return Field.from_json(node)
    if ismap(node):
        return Field(type=dict, schema=node)
    if islist(node):
        return Field(type=node)
    return Field(type=node)


def compile_paths(declaration: Any) -> Dict[Path, Field]:
    if not ismap(declaration):
        raise SchemaError(f'Schema declaration must be a map, not {declaration!r}')

    paths = {}
    _visit_object(declaration, Path(), paths)
    return paths


def _visit(node: Any, path: Path, paths: Dict[Path, Field]) -> None:
    if isinstance(node, Field):
        _visit_field(node, path, paths)
    elif islist(node):
        _visit_array(node, path, paths)
    elif isdescriptor(node):
        _visit_field(Field.from_json(node), path, paths)
    elif ismap(node):
        _visit_object(node, path, paths)
    else:
        paths[path] = Field(type=node)


def _visit_field(field: Field, path: Path, paths: Dict[Path, Field]) -> None:
    ftype = field.type

    # A bare list type is an array of anything.
    if list is ftype:
        ftype = []

    if islist(ftype):
        _visit_array(ftype, path, paths)
        paths[path] = paths[path].with_modifiers(field)

    elif ismap(ftype) and 0 < len(ftype):
        _visit_object(ftype, path, paths)
        paths[path] = paths[path].with_modifiers(field)

    elif ismap(ftype):
        paths[path] = field.copy(type=dict)

    else:
        paths[path] = field


def _visit_array(arr: List[Any], path: Path, paths: Dict[Path, Field]) -> None:
    paths[path] = Field(type=list)
    elem = path.child(WILDCARD)

    # Arrays are homogeneous: the first element describes them all.
    if 0 == len(arr):
        paths[elem] = Field(type=S_any)
    else:
        _visit(arr[0], elem, paths)


def _visit_object(node: Dict[str, Any], path: Path, paths: Dict[Path, Field]) -> None:
    if path:
        paths[path] = Field(type=dict, schema=node)

    for key, value in node.items():
        _visit(value, path.child(key), paths)


# Navigate the declaration itself. Lists are entered through their
# first element, Fields through their structured type.
def _declchild(node: Any, part: Any) -> Any:
    if isinstance(node, Field):
        node = node.type
    if islist(node):
        return getprop(node, 0) if WILDCARD is part or str(part).isdigit() else UNDEF
    if ismap(node):
        return node.get(part)
    return UNDEF


def _getdecl(decl: Any, path: Path) -> Any:
    node = decl
    for part in path:
        if UNDEF is node:
            break
        node = _declchild(node, part)
    return node


def _setdecl(decl: Any, path: Path, value: Any) -> bool:
    "Set (or with UNDEF, remove) a declaration node, creating groups as needed."
    if 0 == len(path):
        return False

    parent = decl
    for pI, part in enumerate(path[:-1]):
        child = _declchild(parent, part)
        if UNDEF is child:
            if UNDEF is value:
                return False
            child = [Group()] if WILDCARD is path[pI + 1] else Group()
            container = parent.type if isinstance(parent, Field) else parent
            if not ismap(container):
                return False
            container[part] = child
        parent = child

    container = parent.type if isinstance(parent, Field) else parent
    last = path[-1]

    if islist(container):
        if WILDCARD is not last:
            return False
        if UNDEF is value:
            container[:] = []
        elif 0 == len(container):
            container.append(value)
        else:
            container[0] = value
        return True

    if not ismap(container):
        return False

    if UNDEF is value:
        container.pop(last, UNDEF)
    else:
        container[last] = value
    return True


def _flatten(paths: Tuple[Any, ...]) -> List[Path]:
    out = []
    for path in paths:
        if islist(path):
            out.extend(Path.parse(p) for p in path)
        else:
            out.append(Path.parse(path))
    return out


class Schema:
    """
    A compiled schema declaration. `paths_table` maps each Path to its
    Field and is never modified; the algebra methods return new schemas.
    """

    def __init__(self, declaration: Any) -> None:
        self._decl = clone(declaration)
        self.paths_table = compile_paths(self._decl)
        logger.debug('compiled %d paths: %s', len(self.paths_table),
                     ', '.join(str(p) for p in self.paths_table))

    def json(self) -> Any:
        return self._decl

    def path(self, path: Any, decl: Any = UNDEF) -> Any:
        """
        With one argument, return the declaration node at `path`. With two,
        return a new Schema where that node is replaced by `decl`.
        """
        parts = Path.parse(path)
        if UNDEF is decl:
            return _getdecl(self._decl, parts)

        out = clone(self._decl)
        _setdecl(out, parts, decl)
        return Schema(out)

    def omit(self, *paths: Any) -> 'Schema':
        out = clone(self._decl)
        for path in _flatten(paths):
            _setdecl(out, path, UNDEF)
        return Schema(out)

    def pick(self, *paths: Any) -> 'Schema':
        out = Group()
        for path in _flatten(paths):
            node = _getdecl(self._decl, path)
            if UNDEF is not node:
                _setdecl(out, path, clone(node))
        return Schema(out)

    def transform(self, fn: Callable[[str, Field], Any]) -> 'Schema':
        """
        Rewrite each declared field, top-down. Nested objects are descended
        into; any other node is passed to `fn(path, field)` as a Field copy,
        and replaced by the result (or removed, if the result is UNDEF).
        """
        def rewrite(node: Dict[str, Any], path: Path) -> Dict[str, Any]:
            out = Group() if isinstance(node, Group) else {}
            for key, child in node.items():
                cpath = path.child(key)
                if ismap(child) and not isdescriptor(child):
                    out[key] = rewrite(child, cpath)
                else:
                    result = fn(str(cpath), asfield(child))
                    if UNDEF is not result:
                        out[key] = result
            return out

        return Schema(rewrite(clone(self._decl), Path()))

    def each_path(self, fn: Callable[[str, Field], Any]) -> None:
        "Call `fn(path, field)` for every compiled path, depth-first in declaration order."
        for path, field in self.paths_table.items():
            fn(str(path), field)

    def paths(self) -> List[Dict[str, Any]]:
        return [{'path': str(path), **field.json()} for path, field in self.paths_table.items()]

    def unmarshal(self, doc: Any, projection: Optional[Dict[str, Any]] = UNDEF) -> Any:
        return unmarshal(doc, self, projection)

    def model(self, name: Optional[str] = UNDEF) -> type:
        return model(self, name)

    def __repr__(self) -> str:
        return f'Schema({self._decl!r})'


def compile(declaration: Any) -> Schema:
    "Compile a schema declaration. Raises SchemaError for malformed declarations."
    return Schema(declaration)


__all__ = [
    'Schema',
    'asfield',
    'compile',
    'compile_paths',
    'isdescriptor',
]
