"""Built-in type identifiers recognized in model type expressions."""

from __future__ import annotations

from .models import PrimitiveKind

PRIMITIVE_SPELLINGS: dict[str, PrimitiveKind] = {
    "bool": PrimitiveKind.BOOL,
    "String": PrimitiveKind.STRING,
    "str": PrimitiveKind.STRING,
    "string": PrimitiveKind.STRING,
    "u8": PrimitiveKind.INT,
    "u16": PrimitiveKind.INT,
    "u32": PrimitiveKind.INT,
    "u64": PrimitiveKind.INT,
    "u128": PrimitiveKind.INT,
    "usize": PrimitiveKind.INT,
    "i8": PrimitiveKind.INT,
    "i16": PrimitiveKind.INT,
    "i32": PrimitiveKind.INT,
    "i64": PrimitiveKind.INT,
    "i128": PrimitiveKind.INT,
    "isize": PrimitiveKind.INT,
    "int": PrimitiveKind.INT,
    "f32": PrimitiveKind.FLOAT,
    "f64": PrimitiveKind.FLOAT,
    "float": PrimitiveKind.FLOAT,
    "PathBuf": PrimitiveKind.PATH,
    "Path": PrimitiveKind.PATH,
    "path": PrimitiveKind.PATH,
}

OPTIONAL_SPELLINGS = frozenset({"Option", "Optional", "optional"})
LIST_SPELLINGS = frozenset({"Vec", "List", "list", "VecDeque"})
SET_SPELLINGS = frozenset({"HashSet", "BTreeSet", "Set", "set"})
MAP_SPELLINGS = frozenset({"HashMap", "BTreeMap", "IndexMap", "Map", "Dict", "dict", "map"})
# Indirections that do not change the schema: Box<T> maps like T.
TRANSPARENT_SPELLINGS = frozenset({"Box", "Rc", "Arc"})
OPAQUE_SPELLINGS = frozenset({"Value", "Any", "any"})

BUILTIN_TYPE_NAMES = frozenset(
    set(PRIMITIVE_SPELLINGS)
    | OPTIONAL_SPELLINGS
    | LIST_SPELLINGS
    | SET_SPELLINGS
    | MAP_SPELLINGS
    | TRANSPARENT_SPELLINGS
    | OPAQUE_SPELLINGS
)


def is_builtin_type_name(name: str) -> bool:
    return name in BUILTIN_TYPE_NAMES


__all__ = [
    "BUILTIN_TYPE_NAMES",
    "LIST_SPELLINGS",
    "MAP_SPELLINGS",
    "OPAQUE_SPELLINGS",
    "OPTIONAL_SPELLINGS",
    "PRIMITIVE_SPELLINGS",
    "SET_SPELLINGS",
    "TRANSPARENT_SPELLINGS",
    "is_builtin_type_name",
]
