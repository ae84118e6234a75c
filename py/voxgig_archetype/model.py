# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Voxgig Archetype: models
# ========================
#
# Expose a compiled schema as a type. Constructing a model instance
# unmarshals the given document into it. Models are classes, so a
# model can be used as the type of a field in another schema.


from typing import *

from .struct import UNDEF
from .unmarshal import unmarshal


class ModelType(type):

    def __str__(cls) -> str:
        return cls.__name__


class Model(dict, metaclass=ModelType):
    "A document cast against `schema`."

    schema: Any = UNDEF

    def __init__(self, doc: Any, projection: Optional[Dict[Any, Any]] = UNDEF) -> None:
        super().__init__(unmarshal(doc, type(self).schema, projection))


def model(schema: Any, name: Optional[str] = UNDEF) -> type:
    "Create a Model subclass for a compiled schema."
    return ModelType(name or 'Model', (Model,), {'schema': schema})


__all__ = [
    'Model',
    'ModelType',
    'model',
]
