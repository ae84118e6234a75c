# voxgig_archetype init

from .cast import (
    match_type,
    to,
)

from .error import (
    ArchetypeError,
    CastError,
    EnumError,
    ProjectionError,
    RequiredError,
    SchemaError,
    StructureError,
    ValidateError,
)

from .model import (
    Model,
    model,
)

from .path import (
    WILDCARD,
    Field,
    Group,
    Path,
)

from .schema import (
    Schema,
    compile,
)

from .struct import (
    clone,
    getpath,
    setpath,
    stringify,
    typify,
)

from .unmarshal import (
    unmarshal,
)


__all__ = [
    'ArchetypeError',
    'CastError',
    'EnumError',
    'Field',
    'Group',
    'Model',
    'Path',
    'ProjectionError',
    'RequiredError',
    'Schema',
    'SchemaError',
    'StructureError',
    'ValidateError',
    'WILDCARD',
    'clone',
    'compile',
    'getpath',
    'match_type',
    'model',
    'setpath',
    'stringify',
    'to',
    'typify',
    'unmarshal',
]
