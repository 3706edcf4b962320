"""Decoding of Kotlin metadata protobuf messages into the API surface model."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import TypeVar

from ktbridge.metadata.classreader import RawMetadata
from ktbridge.metadata.model import (
    APIObject,
    ClassKind,
    Constructor,
    Function,
    FunctionFlags,
    KotlinType,
    Param,
    Property,
    TypeParam,
)
from ktbridge.metadata.wire import (
    BYTES,
    VARINT,
    FieldValue,
    WireError,
    class_kind_from_flags,
    is_public_visible,
    iter_fields,
    str_at,
)

_T = TypeVar("_T")

_KIND_CLASS = 1
_KIND_FILE_FACADE = 2
_STAR_PROJECTION = 3


class ProtoDecodeError(ValueError):
    """Raised when Kotlin metadata protobuf data cannot be decoded."""


def _i32(value: int) -> int:
    """Truncate to a signed 32-bit integer."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _jvm_to_dotted(name: str) -> str:
    return name.replace("/", ".")


def _fields(data: bytes, message: str) -> Iterator[tuple[int, int, FieldValue]]:
    try:
        yield from iter_fields(data)
    except WireError as exc:
        raise ProtoDecodeError(f"{message}: {exc}") from exc


def _varint(value: FieldValue, wire_type: int, message: str, what: str) -> int:
    if wire_type != VARINT or not isinstance(value, int):
        raise ProtoDecodeError(f"{message}: bad {what}: expected varint")
    return value


def _payload(value: FieldValue, wire_type: int, message: str, what: str) -> bytes:
    if wire_type != BYTES or not isinstance(value, bytes):
        raise ProtoDecodeError(f"{message}: bad {what}: expected length-delimited field")
    return value


def _sub(
    decode: Callable[[bytes, Sequence[str]], _T],
    value: FieldValue,
    wire_type: int,
    d2: Sequence[str],
    message: str,
    what: str,
) -> _T:
    payload = _payload(value, wire_type, message, what)
    try:
        return decode(payload, d2)
    except ProtoDecodeError as exc:
        raise ProtoDecodeError(f"{message}: {what}: {exc}") from exc


def _name(value: FieldValue, wire_type: int, d2: Sequence[str], message: str, what: str) -> str:
    return str_at(d2, _i32(_varint(value, wire_type, message, what)))


def _function_flags(flags: int) -> FunctionFlags:
    visibility = (flags >> 3) & 0x7
    modality = flags & 0x3
    return FunctionFlags(
        is_public=is_public_visible(flags),
        is_internal=visibility == 0,
        is_private=visibility == 1,
        is_protected=visibility == 2,
        is_final=modality == 0,
        is_open=modality == 1,
        is_abstract=modality == 2,
        is_operator=bool(flags & (1 << 13)),
        is_infix=bool(flags & (1 << 14)),
        is_inline=bool(flags & (1 << 15)),
        is_tailrec=bool(flags & (1 << 16)),
        is_external=bool(flags & (1 << 17)),
        is_suspend=bool(flags & (1 << 18)),
        is_expect=bool(flags & (1 << 19)),
    )


def _decode_type(data: bytes, d2: Sequence[str]) -> KotlinType:
    msg = "TypeProto"
    kt = KotlinType()
    for number, wire_type, value in _fields(data, msg):
        if number == 1:
            kt.nullable = bool(_i32(_varint(value, wire_type, msg, "flags")) & 1)
        elif number == 3:
            kt.class_name = _jvm_to_dotted(_name(value, wire_type, d2, msg, "class_name"))
        elif number == 4:
            kt.type_args.append(_sub(_decode_type_argument, value, wire_type, d2, msg, "argument"))
        elif number == 6:
            kt.class_name = _jvm_to_dotted(_name(value, wire_type, d2, msg, "type_alias_name"))
        elif number == 9:
            _varint(value, wire_type, msg, "type_parameter")
            kt.is_type_param = True
    return kt


def _decode_type_argument(data: bytes, d2: Sequence[str]) -> KotlinType:
    msg = "TypeArgumentProto"
    kt = KotlinType()
    for number, wire_type, value in _fields(data, msg):
        if number == 2:
            kt = _sub(_decode_type, value, wire_type, d2, msg, "type")
        elif number == 3:
            if _varint(value, wire_type, msg, "projection") == _STAR_PROJECTION:
                kt.is_star_projection = True
    return kt


def _decode_value_param(data: bytes, d2: Sequence[str]) -> Param:
    msg = "ValueParameterProto"
    param = Param()
    for number, wire_type, value in _fields(data, msg):
        if number == 1:
            param.has_default = bool(_i32(_varint(value, wire_type, msg, "flags")) & 1)
        elif number == 2:
            param.name = _name(value, wire_type, d2, msg, "name")
        elif number == 3:
            param.type = _sub(_decode_type, value, wire_type, d2, msg, "type")
    return param


def _decode_type_param(data: bytes, d2: Sequence[str]) -> TypeParam:
    msg = "TypeParameterProto"
    tp = TypeParam()
    for number, wire_type, value in _fields(data, msg):
        if number == 3:
            tp.name = _name(value, wire_type, d2, msg, "name")
    return tp


def _decode_function(data: bytes, d2: Sequence[str]) -> tuple[Function, int]:
    msg = "FunctionProto"
    fn = Function()
    flags_raw = 0
    return_type_set = False
    for number, wire_type, value in _fields(data, msg):
        if number == 1:
            flags_raw = _i32(_varint(value, wire_type, msg, "flags"))
            fn.flags = _function_flags(flags_raw)
        elif number == 2:
            fn.name = _name(value, wire_type, d2, msg, "name")
            fn.jvm_name = fn.name
        elif number == 3:
            payload = _payload(value, wire_type, msg, "return_type")
            if not return_type_set:
                fn.return_type = _sub(_decode_type, payload, BYTES, d2, msg, "return_type")
                return_type_set = True
        elif number == 4:
            fn.type_params.append(
                _sub(_decode_type_param, value, wire_type, d2, msg, "type_parameter")
            )
        elif number == 5:
            fn.params.append(
                _sub(_decode_value_param, value, wire_type, d2, msg, "value_parameter")
            )
        elif number == 6:
            fn.receiver = _sub(_decode_type, value, wire_type, d2, msg, "receiver_type")
    return fn, flags_raw


def _decode_constructor(data: bytes, d2: Sequence[str]) -> Constructor:
    msg = "ConstructorProto"
    ctor = Constructor(is_primary=True)
    for number, wire_type, value in _fields(data, msg):
        if number == 1:
            if _i32(_varint(value, wire_type, msg, "flags")) & (1 << 6):
                ctor.is_primary = False
        elif number == 5:
            ctor.params.append(
                _sub(_decode_value_param, value, wire_type, d2, msg, "value_parameter")
            )
    return ctor


def _decode_property(data: bytes, d2: Sequence[str]) -> tuple[Property, int]:
    msg = "PropertyProto"
    prop = Property()
    flags_raw = 0
    for number, wire_type, value in _fields(data, msg):
        if number == 1:
            flags_raw = _i32(_varint(value, wire_type, msg, "flags"))
            prop.is_var = bool(flags_raw & (1 << 9))
            prop.is_lateinit = bool(flags_raw & (1 << 10))
        elif number == 2:
            prop.name = _name(value, wire_type, d2, msg, "name")
        elif number == 3:
            prop.type = _sub(_decode_type, value, wire_type, d2, msg, "return_type")
    return prop, flags_raw


def _decode_enum_entry(data: bytes, d2: Sequence[str]) -> str:
    msg = "EnumEntryProto"
    for number, wire_type, value in _fields(data, msg):
        if number == 2:
            return _name(value, wire_type, d2, msg, "name")
    return ""


def _stub(jvm_name: str) -> APIObject:
    return APIObject(class_name=_jvm_to_dotted(jvm_name), jvm_class_name=jvm_name)


def _parse_class_proto(data: bytes, d2: Sequence[str], obj: APIObject) -> None:
    msg = "ClassProto"
    for number, wire_type, value in _fields(data, msg):
        if number == 1:
            flags = _i32(_varint(value, wire_type, msg, "flags"))
            obj.kind = class_kind_from_flags(flags)
            if flags & (1 << 10):
                obj.kind = ClassKind.DATA_CLASS
            if flags & (1 << 13):
                obj.kind = ClassKind.VALUE_CLASS
        elif number == 3:
            jvm_name = _name(value, wire_type, d2, msg, "fq_name")
            obj.jvm_class_name = jvm_name
            obj.class_name = _jvm_to_dotted(jvm_name)
        elif number == 7:
            obj.nested.append(_stub(_name(value, wire_type, d2, msg, "nested_class_name")))
        elif number == 8:
            obj.constructors.append(
                _sub(_decode_constructor, value, wire_type, d2, msg, "constructor")
            )
        elif number == 9:
            fn, flags = _sub(_decode_function, value, wire_type, d2, msg, "function")
            if is_public_visible(flags):
                obj.functions.append(fn)
        elif number == 10:
            prop, flags = _sub(_decode_property, value, wire_type, d2, msg, "property")
            if is_public_visible(flags):
                obj.properties.append(prop)
        elif number == 12:
            obj.enum_entries.append(
                _sub(_decode_enum_entry, value, wire_type, d2, msg, "enum_entry")
            )
        elif number == 14:
            obj.sealed_subs.append(
                _stub(_name(value, wire_type, d2, msg, "sealed_subclass_fq_name"))
            )
    if obj.sealed_subs:
        obj.kind = ClassKind.SEALED_CLASS


def _parse_package_proto(data: bytes, d2: Sequence[str], obj: APIObject) -> None:
    msg = "PackageProto"
    for number, wire_type, value in _fields(data, msg):
        if number == 3:
            fn, flags = _sub(_decode_function, value, wire_type, d2, msg, "function")
            if is_public_visible(flags):
                obj.functions.append(fn)
        elif number == 4:
            prop, flags = _sub(_decode_property, value, wire_type, d2, msg, "property")
            if is_public_visible(flags):
                obj.properties.append(prop)


def decode_class(raw: RawMetadata) -> APIObject:
    """Decode class metadata (kind 1) into an APIObject.

    Only public and internal functions and properties are kept.
    """
    if raw.kind != _KIND_CLASS:
        raise ProtoDecodeError(f"proto: expected kind=1 (class), got kind={raw.kind}")
    obj = APIObject(metadata_schema_version=tuple(raw.version))
    try:
        _parse_class_proto(raw.d1, raw.d2, obj)
    except ProtoDecodeError as exc:
        raise ProtoDecodeError(f"proto: decode_class: {exc}") from exc
    return obj


def decode_package(raw: RawMetadata) -> APIObject:
    """Decode file facade metadata (kind 2) into an APIObject."""
    if raw.kind != _KIND_FILE_FACADE:
        raise ProtoDecodeError(
            f"proto: expected kind=2 (file facade), got kind={raw.kind}"
        )
    obj = APIObject(kind=ClassKind.FILE_FACADE, metadata_schema_version=tuple(raw.version))
    if raw.xs:
        obj.class_name = _jvm_to_dotted(raw.xs)
        obj.jvm_class_name = raw.xs
    try:
        _parse_package_proto(raw.d1, raw.d2, obj)
    except ProtoDecodeError as exc:
        raise ProtoDecodeError(f"proto: decode_package: {exc}") from exc
    return obj