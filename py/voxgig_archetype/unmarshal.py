# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Voxgig Archetype: unmarshal
# ===========================
#
# Cast a document against a compiled schema. The document is cloned,
# then four passes run over it in a fixed order, each seeing the
# state left by the previous one:
#
# 1. defaults: fill absent values that declare a default.
# 2. cast: walk the document with the path table, deleting undeclared
#    keys, wrapping lone values declared as arrays, and casting leaves.
# 3. required: report required paths that are still absent.
# 4. validation: check enum membership and run custom validators.
#
# Failures from all passes are collected into one ValidateError,
# keyed by real path (array indexes, not wildcards), and raised at the end.


from typing import *
import logging

from .cast import to
from .error import (
    ArchetypeError,
    EnumError,
    ProjectionError,
    RequiredError,
    StructureError,
    ValidateError,
)
from .path import (
    S_DS,
    WILDCARD,
    Field,
    Path,
    invoke,
)
from .struct import (
    UNDEF,
    clone,
    delprop,
    islist,
    ismap,
    setpath,
    stringify,
)


logger = logging.getLogger(__name__)

# Reserved projection flags.
S_noDefaults = '$noDefaults'
S_noRequired = '$noRequired'

# Projection modes.
S_inclusive = 'inclusive'
S_exclusive = 'exclusive'


class Projection:
    """
    Normalised projection. In inclusive mode only the named paths, their
    ancestors and their descendants take part; in exclusive mode
    everything except the named paths and their descendants does.
    """

    def __init__(
            self,
            mode: str = S_exclusive,
            paths: Optional[List[Path]] = None,
            nodefaults: bool = False,
            norequired: bool = False
    ) -> None:
        self.mode = mode
        self.paths = paths or []
        self.nodefaults = nodefaults
        self.norequired = norequired

    def skip(self, path: Path) -> bool:
        if S_inclusive == self.mode:
            return not any(named.isprefix(path) or path.isprefix(named) for named in self.paths)
        return any(named.isprefix(path) for named in self.paths)

    def __repr__(self) -> str:
        return f'Projection({self.mode}, {[str(p) for p in self.paths]})'


def handle_projection(projection: Optional[Dict[Any, Any]]) -> Projection:
    "Normalise a projection. Raises ProjectionError if markers are mixed."
    if UNDEF is projection:
        return Projection()

    mode = UNDEF
    paths = []
    for key, marker in projection.items():
        if isinstance(key, str) and key.startswith(S_DS) and 1 < len(key):
            continue

        kmode = S_inclusive if marker else S_exclusive
        if UNDEF is mode:
            mode = kmode
        elif mode != kmode:
            raise ProjectionError("Can't mix inclusive and exclusive in projection")

        # Array indexes project every element.
        paths.append(Path(WILDCARD if isinstance(part, str) and part.isdigit() else part
                          for part in Path.parse(key)).schema_path())

    return Projection(
        mode=mode or S_exclusive,
        paths=paths,
        nodefaults=bool(projection.get(S_noDefaults)),
        norequired=bool(projection.get(S_noRequired)),
    )


def resolve(doc: Any, path: Path) -> List[Tuple[Path, Any]]:
    """
    Find the positions a schema path addresses in a document, as
    (real path, value) pairs. WILDCARD fans out over the elements of a
    list. A missing map key or list yields a position with value UNDEF, so
    that absent values can be reported or filled in. Below a missing list
    the real path keeps the WILDCARD segment.
    """
    positions = [(Path(), doc)]
    for part in path:
        found = []
        for real, val in positions:
            if WILDCARD is part:
                if islist(val):
                    found.extend((real.child(i), v) for i, v in enumerate(val))
                elif UNDEF is val:
                    found.append((real.child(WILDCARD), UNDEF))
            elif ismap(val):
                found.append((real.child(part), val.get(part)))
            elif UNDEF is val:
                found.append((real.child(part), UNDEF))
        positions = found
    return positions


def apply_defaults(doc: Any, schema: Any, projection: Projection) -> None:
    if projection.nodefaults:
        return

    for path, field in schema.paths_table.items():
        if UNDEF is field.default or projection.skip(path):
            continue
        for real, val in resolve(doc, path):
            # Elements of a missing list have nowhere to go.
            if UNDEF is val and WILDCARD not in real:
                setpath(doc, real, field.default_value(doc))


def visit_object(
        obj: Any,
        schema: Any,
        projection: Projection,
        path: Path,
        error: ValidateError
) -> Any:
    # Only array elements reach here as UNDEF; map keys holding UNDEF
    # are removed by the caller.
    if UNDEF is obj:
        return obj

    if not ismap(obj):
        error.mark_error(path, StructureError(f'Could not cast {obj!r} to Object'))
        return UNDEF

    spath = path.schema_path()

    if 0 < len(spath):
        current = schema.paths_table.get(spath)
        if UNDEF is current or UNDEF is current.schema:
            return obj

    for key in list(obj.keys()):
        kpath = spath.child(key)
        field = schema.paths_table.get(kpath)

        if UNDEF is field or projection.skip(kpath):
            logger.debug('removing %s', path.child(key))
            delprop(obj, key)
            continue

        # No type, no casting.
        if UNDEF is field.type:
            continue

        value = obj[key]

        if list is field.type:
            obj[key] = visit_array(value, schema, projection, path.child(key), error)

        elif dict is field.type:
            if UNDEF is value:
                delprop(obj, key)
            else:
                obj[key] = visit_object(value, schema, projection, path.child(key), error)

        else:
            cast_terminus(obj, key, field, path.child(key), error)

    return obj


def visit_array(
        arr: Any,
        schema: Any,
        projection: Projection,
        path: Path,
        error: ValidateError
) -> Any:
    field = schema.paths_table.get(path.schema_path().child(WILDCARD))

    if UNDEF is field or UNDEF is field.type or UNDEF is arr:
        return arr

    # A lone value is accepted where an array is declared.
    if not islist(arr):
        arr = [arr]

    for index, value in enumerate(arr):
        ipath = path.child(index)

        if list is field.type:
            arr[index] = visit_array(value, schema, projection, ipath, error)
        elif dict is field.type:
            arr[index] = visit_object(value, schema, projection, ipath, error)
        else:
            cast_terminus(arr, index, field, ipath, error)

    return arr


def cast_terminus(parent: Any, key: Any, field: Field, path: Path, error: ValidateError) -> None:
    try:
        parent[key] = to(parent[key], field.type)
    except ArchetypeError as err:
        error.mark_error(path, err)


def check_required(doc: Any, schema: Any, projection: Projection, error: ValidateError) -> None:
    if projection.norequired:
        return

    for path, field in schema.paths_table.items():
        if projection.skip(path) or not field.isrequired(doc, schema):
            continue

        for real, val in resolve(doc, path):
            missing = UNDEF is val
            if list is field.type and islist(val):
                missing = any(UNDEF is v for v in val)
            if missing:
                error.mark_error(real, RequiredError(f'Path "{real}" is required'))


def run_validation(doc: Any, schema: Any, projection: Projection, error: ValidateError) -> None:
    for path, field in schema.paths_table.items():
        if UNDEF is field.validate and UNDEF is field.enum:
            continue

        if projection.skip(path):
            logger.debug('skip validation for %s', path)
            continue

        for real, val in resolve(doc, path):
            # Absent values are the required pass's concern.
            if UNDEF is val:
                continue

            if UNDEF is not field.enum:
                check_enum(val, field, real, error)

            if UNDEF is not field.validate:
                try:
                    invoke(field.validate, val, field, doc)
                except Exception as err:
                    error.mark_error(real, err)


def check_enum(val: Any, field: Field, path: Path, error: ValidateError) -> None:
    members = [(path.child(i), v) for i, v in enumerate(val)] if islist(val) else [(path, val)]
    for mpath, member in members:
        if UNDEF is not member and member not in field.enum:
            error.mark_error(mpath, EnumError(
                f'Value "{stringify(member)}" invalid, allowed values are '
                f'{stringify(list(field.enum))}'))


def unmarshal(doc: Any, schema: Any, projection: Optional[Dict[Any, Any]] = UNDEF) -> Any:
    """
    Cast `doc` against a compiled schema, honouring the projection. The
    caller's document is not modified. Raises ValidateError listing every
    failing path.
    """
    projection = handle_projection(projection)

    if UNDEF is doc:
        raise StructureError("Can't cast null or undefined")

    doc = clone(doc)
    error = ValidateError()

    logger.debug('unmarshal: defaults %s', projection)
    apply_defaults(doc, schema, projection)

    logger.debug('unmarshal: cast')
    doc = visit_object(doc, schema, projection, Path(), error)

    # Not a map at the root: there is nothing further to check.
    if UNDEF is doc:
        raise error

    logger.debug('unmarshal: required')
    check_required(doc, schema, projection, error)

    logger.debug('unmarshal: validate')
    run_validation(doc, schema, projection, error)

    if error.has_error:
        raise error

    return doc


__all__ = [
    'Projection',
    'handle_projection',
    'resolve',
    'unmarshal',
]
