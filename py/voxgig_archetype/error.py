# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Voxgig Archetype: errors
# ========================
#
# Failures raised while compiling a schema or casting a document.
# Per-field failures are collected into a ValidateError keyed by the
# real (indexed) path, so one unmarshal call reports every problem.


from typing import *


class ArchetypeError(Exception):
    """Base exception for schema and casting errors."""
    pass


class CastError(ArchetypeError, ValueError):
    """A value could not be coerced to the declared type."""
    pass


class StructureError(CastError):
    """A non-object value was found where the schema expects an object."""
    pass


class RequiredError(ArchetypeError, ValueError):
    """A required path resolved to no value after defaulting and casting."""
    pass


class EnumError(ArchetypeError, ValueError):
    """A value is not one of the declared allowed values."""
    pass


class SchemaError(ArchetypeError, ValueError):
    """The schema declaration itself is malformed."""
    pass


class ProjectionError(ArchetypeError, ValueError):
    """The projection mixes inclusion and exclusion markers."""
    pass


class ValidateError(ArchetypeError):
    """
    Aggregated per-path failures of one unmarshal call.

    `errors` maps a dotted path to the underlying exception. The first
    failure recorded at a path is kept.
    """

    def __init__(self) -> None:
        super().__init__()
        self.errors: Dict[str, BaseException] = {}

    @property
    def has_error(self) -> bool:
        return 0 < len(self.errors)

    def mark_error(self, path: Any, error: BaseException) -> 'ValidateError':
        key = str(path)
        if key not in self.errors:
            self.errors[key] = error
        return self

    def merge(self, error: Optional['ValidateError']) -> 'ValidateError':
        if error is None:
            return self
        for key, err in error.errors.items():
            self.mark_error(key, err)
        return self

    def __str__(self) -> str:
        return ', '.join(f'{key}: {err}' for key, err in self.errors.items())

    def __repr__(self) -> str:
        return f'ValidateError({self})'


__all__ = [
    'ArchetypeError',
    'CastError',
    'EnumError',
    'ProjectionError',
    'RequiredError',
    'SchemaError',
    'StructureError',
    'ValidateError',
]
