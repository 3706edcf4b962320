"""The language-neutral Kotlin API surface model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class ClassKind(IntEnum):
    """The category of a Kotlin class or file."""

    CLASS = 0
    INTERFACE = 1
    OBJECT = 2
    ENUM_CLASS = 3
    DATA_CLASS = 4
    SEALED_CLASS = 5
    COMPANION_OBJECT = 6
    ANNOTATION_CLASS = 7
    VALUE_CLASS = 8
    JAVA_CLASS = 9
    FILE_FACADE = 10


@dataclass
class KotlinType:
    """A Kotlin type reference."""

    class_name: str = ""
    nullable: bool = False
    type_args: list[KotlinType] = field(default_factory=list)
    is_type_param: bool = False
    type_param_name: str = ""
    is_star_projection: bool = False


@dataclass
class TypeParam:
    """A generic type parameter; no upper bound means ``Any?``."""

    name: str = ""
    upper_bound: KotlinType | None = None


@dataclass
class Param:
    """A function or constructor parameter."""

    name: str = ""
    type: KotlinType = field(default_factory=KotlinType)
    has_default: bool = False


@dataclass
class Constructor:
    """A Kotlin constructor."""

    is_primary: bool = False
    params: list[Param] = field(default_factory=list)


@dataclass
class Property:
    """A Kotlin property (val or var)."""

    name: str = ""
    type: KotlinType = field(default_factory=KotlinType)
    is_var: bool = False
    is_lateinit: bool = False
    has_backing: bool = False


@dataclass
class FunctionFlags:
    """Visibility, modality and modifier flags of a function."""

    is_public: bool = False
    is_internal: bool = False
    is_private: bool = False
    is_protected: bool = False
    is_final: bool = False
    is_open: bool = False
    is_abstract: bool = False
    is_inline: bool = False
    is_operator: bool = False
    is_infix: bool = False
    is_external: bool = False
    is_tailrec: bool = False
    is_suspend: bool = False
    is_expect: bool = False


@dataclass
class Function:
    """A Kotlin function; ``receiver`` is set for extension functions."""

    name: str = ""
    jvm_name: str = ""
    jvm_descriptor: str = ""
    receiver: KotlinType | None = None
    params: list[Param] = field(default_factory=list)
    type_params: list[TypeParam] = field(default_factory=list)
    return_type: KotlinType = field(default_factory=KotlinType)
    flags: FunctionFlags = field(default_factory=FunctionFlags)


@dataclass
class APIObject:
    """The API surface of a single class or file facade.

    ``class_name`` uses dots, ``jvm_class_name`` slashes;
    ``metadata_schema_version`` is the metadata ``mv`` triple.
    """

    class_name: str = ""
    jvm_class_name: str = ""
    kind: ClassKind = ClassKind.CLASS
    functions: list[Function] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)
    constructors: list[Constructor] = field(default_factory=list)
    nested: list[APIObject] = field(default_factory=list)
    sealed_subs: list[APIObject] = field(default_factory=list)
    enum_entries: list[str] = field(default_factory=list)
    metadata_schema_version: tuple[int, int, int] = (0, 0, 0)