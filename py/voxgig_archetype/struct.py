# Copyright (c) 2025 Voxgig Ltd. MIT LICENSE.
#
# Voxgig Archetype: struct utilities
# ==================================
#
# Helpers for in-memory JSON-like data structures (maps and lists,
# plus whatever scalar or object values they hold). The schema compiler
# and the unmarshal pipeline use these to address document positions.
#
# - isnode, islist, ismap, iskey, isfunc: identify value kinds.
# - typify: kind name of a value, as used in messages and match_type.
# - getprop, setprop, delprop: safe single-key access.
# - getpath, setpath: deep access by key path.
# - clone: deep copy of a document.
# - stringify: human-friendly string version of a value.


from typing import *
import copy
import json


# Kind names.
S_array = 'array'
S_boolean = 'boolean'
S_function = 'function'
S_number = 'number'
S_object = 'object'
S_string = 'string'
S_null = 'null'

# General strings.
S_MT = ''
S_DT = '.'


# The standard undefined value for this language.
UNDEF = None


def isnode(val: Any = UNDEF) -> bool:
    "Value is a node - defined, and a map (hash) or list (array)."
    return isinstance(val, (dict, list))


def ismap(val: Any = UNDEF) -> bool:
    "Value is a defined map (hash) with string keys."
    return isinstance(val, dict)


def islist(val: Any = UNDEF) -> bool:
    "Value is a defined list (array) with integer keys (indexes)."
    return isinstance(val, list)


def iskey(key: Any = UNDEF) -> bool:
    "Value is a defined string (non-empty) or integer key."
    if isinstance(key, str):
        return len(key) > 0
    # Exclude bool (which is a subclass of int)
    if isinstance(key, bool):
        return False
    return isinstance(key, int)


def isfunc(val: Any = UNDEF) -> bool:
    "Value is a function."
    return callable(val)


def typify(value: Any = UNDEF) -> str:
    if value is UNDEF:
        return S_null
    if isinstance(value, bool):
        return S_boolean
    if isinstance(value, (int, float)):
        return S_number
    if isinstance(value, str):
        return S_string
    if isinstance(value, list):
        return S_array
    if isinstance(value, type):
        return S_function
    if isinstance(value, dict):
        return S_object
    if callable(value):
        return S_function
    return S_object


def getprop(val: Any = UNDEF, key: Any = UNDEF, alt: Any = UNDEF) -> Any:
    """
    Safely get a property of a node. Undefined arguments return undefined.
    If the key is not found, return the alternative value.
    """
    if UNDEF is val or UNDEF is key:
        return alt

    out = alt

    if ismap(val):
        out = val.get(key, alt)

    elif islist(val):
        try:
            key = int(key)
        except (TypeError, ValueError):
            return alt

        if 0 <= key < len(val):
            out = val[key]

    if UNDEF is out:
        return alt

    return out


def setprop(parent: Any, key: Any, val: Any):
    """
    Safely set a property on a dictionary or list.
    - If `val` is UNDEF on a map, delete the key.
    - For lists, key >= len(list) -> append.
    """
    if not iskey(key):
        return parent

    if ismap(parent):
        if UNDEF is val:
            parent.pop(key, UNDEF)
        else:
            parent[key] = val

    elif islist(parent):
        try:
            key_i = int(key)
        except ValueError:
            return parent

        if 0 <= key_i < len(parent):
            parent[key_i] = val
        elif key_i >= len(parent):
            parent.append(val)

    return parent


def delprop(parent: Any, key: Any):
    "Delete a property from a map. Lists are left alone, so indexes stay stable."
    if ismap(parent) and key in parent:
        del parent[key]
    return parent


def getpath(store: Any, path: Iterable[Any]) -> Any:
    "Get the value at a key path inside a node, or UNDEF if any part is missing."
    val = store
    for part in path:
        if UNDEF is val:
            break
        val = getprop(val, part)
    return val


def setpath(store: Any, path: Sequence[Any], val: Any) -> bool:
    """
    Set the value at a key path inside a node, creating intermediate maps
    for missing map keys. Returns False if the path runs into a scalar or a
    missing list element, in which case nothing is set.
    """
    if 0 == len(path):
        return False

    parent = store
    for part in path[:-1]:
        child = getprop(parent, part)
        if UNDEF is child:
            if not ismap(parent):
                return False
            child = {}
            parent[part] = child
        elif not isnode(child):
            return False
        parent = child

    if not isnode(parent):
        return False

    setprop(parent, path[-1], val)
    return True


def clone(val: Any = UNDEF):
    """
    Clone a JSON-like data structure.
    NOTE: function and class references are copied, *not* cloned.
    """
    if UNDEF is val:
        return UNDEF
    return copy.deepcopy(val)


def stringify(val: Any, maxlen: int = UNDEF):
    "Safely stringify a value for printing (NOT JSON!)."

    valstr = S_MT

    if UNDEF is val:
        return valstr

    if isinstance(val, str):
        valstr = val
    else:
        try:
            valstr = json.dumps(val, sort_keys=True, separators=(',', ':'))
            valstr = valstr.replace('"', '')
        except (TypeError, ValueError):
            valstr = str(val)

    if maxlen is not UNDEF:
        json_len = len(valstr)
        valstr = valstr[:maxlen]

        if 3 < maxlen < json_len:
            valstr = valstr[:maxlen - 3] + '...'

    return valstr


__all__ = [
    'UNDEF',
    'clone',
    'delprop',
    'getpath',
    'getprop',
    'isfunc',
    'iskey',
    'islist',
    'ismap',
    'isnode',
    'setpath',
    'setprop',
    'stringify',
    'typify',
]
