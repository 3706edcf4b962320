import io
import struct
import zipfile

import pytest

from ktbridge.metadata.ingest import IngestError, ingest_jar, ingest_jar_bytes
from ktbridge.metadata.model import ClassKind


# --- protobuf helpers -------------------------------------------------------

def _varint(value):
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _pb_varint(number, value):
    return _varint(number << 3) + _varint(value)


def _pb_bytes(number, data):
    return _varint((number << 3) | 2) + _varint(len(data)) + data


def _simple_class_proto(fq_name_idx):
    return _pb_varint(1, 3 << 3) + _pb_varint(3, fq_name_idx)


def _type_proto(class_name_idx):
    return _pb_varint(3, class_name_idx)


def _function_proto(name_idx, flags, return_type):
    return _pb_varint(1, flags) + _pb_varint(2, name_idx) + _pb_bytes(3, return_type)


def _package_proto(functions):
    return b"".join(_pb_bytes(3, fn) for fn in functions)


# --- class file helpers -----------------------------------------------------

class _Pool:
    def __init__(self):
        self.entries = []

    def add(self, tag, payload):
        self.entries.append(bytes([tag]) + payload)
        return len(self.entries)

    def utf8(self, text):
        raw = text if isinstance(text, bytes) else text.encode("utf-8")
        return self.add(1, struct.pack(">H", len(raw)) + raw)

    def integer(self, value):
        return self.add(3, struct.pack(">i", value))

    def serialise(self):
        return struct.pack(">H", len(self.entries) + 1) + b"".join(self.entries)


def _class_file(pool, this_class, attributes):
    out = struct.pack(">IHH", 0xCAFEBABE, 0, 52)
    out += pool.serialise()
    out += struct.pack(">HHH", 0x0001, this_class, 0)
    out += struct.pack(">HHH", 0, 0, 0)
    out += struct.pack(">H", len(attributes))
    for name_idx, data in attributes:
        out += struct.pack(">HI", name_idx, len(data)) + data
    return out


def _class_with_metadata(kind, d1=b"", d2=(), xs=None, version=(1, 9, 0)):
    pool = _Pool()
    rva = pool.utf8("RuntimeVisibleAnnotations")
    ann_type = pool.utf8("Lkotlin/Metadata;")
    pairs = []

    k_name = pool.utf8("k")
    pairs.append(struct.pack(">H", k_name) + b"I" + struct.pack(">H", pool.integer(kind)))

    mv_name = pool.utf8("mv")
    mv = struct.pack(">H", mv_name) + b"[" + struct.pack(">H", 3)
    for part in version:
        mv += b"I" + struct.pack(">H", pool.integer(part))
    pairs.append(mv)

    d1_name = pool.utf8("d1")
    pairs.append(
        struct.pack(">H", d1_name) + b"[" + struct.pack(">H", 1) + b"s" + struct.pack(">H", pool.utf8(d1))
    )

    d2_name = pool.utf8("d2")
    d2_value = struct.pack(">H", d2_name) + b"[" + struct.pack(">H", len(d2))
    for item in d2:
        d2_value += b"s" + struct.pack(">H", pool.utf8(item))
    pairs.append(d2_value)

    if xs is not None:
        xs_name = pool.utf8("xs")
        pairs.append(struct.pack(">H", xs_name) + b"s" + struct.pack(">H", pool.utf8(xs)))

    this_class = pool.add(7, struct.pack(">H", pool.utf8("Stub")))
    annotation = struct.pack(">HHH", 1, ann_type, len(pairs)) + b"".join(pairs)
    return _class_file(pool, this_class, [(rva, annotation)])


def _minimal_class():
    pool = _Pool()
    this_class = pool.add(7, struct.pack(">H", pool.utf8("Stub")))
    return _class_file(pool, this_class, [])


def _jar(entries):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buf.getvalue()


def _kotlin_class(jvm_name):
    d2 = [jvm_name]
    return _class_with_metadata(1, _simple_class_proto(0), d2)


# --- tests ------------------------------------------------------------------

def test_two_with_metadata_one_without():
    jar = _jar(
        {
            "com/example/Foo.class": _kotlin_class("com/example/Foo"),
            "com/example/Bar.class": _kotlin_class("com/example/Bar"),
            "com/example/Baz.class": _minimal_class(),
        }
    )
    objects = ingest_jar_bytes(jar)
    assert len(objects) == 2
    assert [o.class_name for o in objects] == ["com.example.Foo", "com.example.Bar"]


def test_empty_jar():
    assert ingest_jar_bytes(_jar({})) == []


def test_nested_class_skipped():
    jar = _jar(
        {
            "com/example/Outer.class": _kotlin_class("com/example/Outer"),
            "com/example/Outer$Inner.class": _kotlin_class("com/example/Outer.Inner"),
        }
    )
    objects = ingest_jar_bytes(jar)
    assert len(objects) == 1
    assert objects[0].class_name == "com.example.Outer"


def test_non_class_files_ignored():
    jar = _jar(
        {
            "com/example/Foo.class": _kotlin_class("com/example/Foo"),
            "META-INF/MANIFEST.MF": b"Manifest-Version: 1.0\n",
            "com/example/config.xml": b"<config/>",
        }
    )
    objects = ingest_jar_bytes(jar)
    assert len(objects) == 1
    assert objects[0].jvm_class_name == "com/example/Foo"


def test_file_facade():
    d2 = ["greet", "kotlin/String"]
    fn = _function_proto(0, 3 << 3, _type_proto(1))
    class_bytes = _class_with_metadata(2, _package_proto([fn]), d2)
    objects = ingest_jar_bytes(_jar({"com/example/FooKt.class": class_bytes}))
    assert len(objects) == 1
    assert objects[0].kind == ClassKind.FILE_FACADE
    assert len(objects[0].functions) == 1
    assert objects[0].functions[0].name == "greet"
    assert objects[0].functions[0].return_type.class_name == "kotlin.String"


def test_multi_file_facade_uses_xs():
    class_bytes = _class_with_metadata(5, b"", [], xs="com/example/UtilsKt", version=(1, 8, 0))
    objects = ingest_jar_bytes(_jar({"com/example/UtilsKt.class": class_bytes}))
    assert len(objects) == 1
    obj = objects[0]
    assert obj.kind == ClassKind.FILE_FACADE
    assert obj.class_name == "com.example.UtilsKt"
    assert obj.jvm_class_name == "com/example/UtilsKt"
    assert obj.metadata_schema_version == (1, 8, 0)


@pytest.mark.parametrize("kind", [3, 4, 99])
def test_kinds_without_api_are_skipped(kind):
    class_bytes = _class_with_metadata(kind, b"", [])
    assert ingest_jar_bytes(_jar({"com/example/Synthetic.class": class_bytes})) == []


def test_malformed_class_skipped():
    jar = _jar(
        {
            "com/example/Broken.class": b"\xca\xfe\xba\xbe\x00",
            "com/example/Foo.class": _kotlin_class("com/example/Foo"),
        }
    )
    objects = ingest_jar_bytes(jar)
    assert [o.class_name for o in objects] == ["com.example.Foo"]


def test_undecodable_proto_skipped():
    bad = _class_with_metadata(1, b"\x0a\xff", ["x"])
    jar = _jar({"com/example/Bad.class": bad})
    assert ingest_jar_bytes(jar) == []


def test_class_version_carried():
    class_bytes = _class_with_metadata(1, _simple_class_proto(0), ["a/B"], version=(2, 0, 1))
    objects = ingest_jar_bytes(_jar({"a/B.class": class_bytes}))
    assert objects[0].metadata_schema_version == (2, 0, 1)
    assert objects[0].class_name == "a.B"


def test_ingest_jar_from_path(tmp_path):
    path = tmp_path / "lib.jar"
    path.write_bytes(
        _jar(
            {
                "com/example/Foo.class": _kotlin_class("com/example/Foo"),
                "com/example/Baz.class": _minimal_class(),
            }
        )
    )
    objects = ingest_jar(path)
    assert [o.class_name for o in objects] == ["com.example.Foo"]


def test_bad_zip_bytes_raise():
    with pytest.raises(IngestError):
        ingest_jar_bytes(b"not a zip archive")


def test_missing_jar_raises(tmp_path):
    with pytest.raises(IngestError):
        ingest_jar(tmp_path / "missing.jar")