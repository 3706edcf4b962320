import io
import json

import pytest

from ktbridge.maven.gmm import (
    GMVersionConstraint,
    GradleModule,
    GradleModuleError,
    Variant,
    parse_gradle_module,
    select_jvm_variant,
)

_USAGE = "org.gradle.usage"
_PLATFORM = "org.jetbrains.kotlin.platform.type"


def _jar_file():
    return {"name": "mylib-1.2.3.jar", "url": "mylib-1.2.3.jar", "sha256": "abc123", "size": 12345}


def _variant(name, usage, platform, *, jar=False):
    attributes = {_USAGE: usage, _PLATFORM: platform}
    if jar:
        attributes["org.gradle.libraryelements"] = "jar"
    return {
        "name": name,
        "attributes": attributes,
        "files": [_jar_file()] if jar else [],
        "dependencies": [],
    }


GRADLE_MODULE_JSON = json.dumps(
    {
        "formatVersion": "1.1",
        "component": {"group": "org.example", "module": "mylib", "version": "1.2.3"},
        "variants": [
            _variant("jvmApiElements", "java-api", "jvm", jar=True),
            _variant("jvmRuntimeElements", "java-runtime", "jvm", jar=True),
            _variant("jsApiElements", "kotlin-api", "js"),
        ],
    },
    indent=2,
)


def test_parse_component_and_variants():
    gm = parse_gradle_module(GRADLE_MODULE_JSON)
    assert gm.format_version == "1.1"
    assert gm.component.group == "org.example"
    assert gm.component.module == "mylib"
    assert gm.component.version == "1.2.3"
    assert [v.name for v in gm.variants] == [
        "jvmApiElements",
        "jvmRuntimeElements",
        "jsApiElements",
    ]
    jar = gm.variants[0].files[0]
    assert jar.name == "mylib-1.2.3.jar"
    assert jar.sha256 == "abc123"
    assert jar.size == 12345


def test_parse_accepts_bytes_and_files():
    from_bytes = parse_gradle_module(GRADLE_MODULE_JSON.encode())
    from_file = parse_gradle_module(io.BytesIO(GRADLE_MODULE_JSON.encode()))
    assert from_bytes == from_file == parse_gradle_module(GRADLE_MODULE_JSON)


def test_select_jvm_variant_prefers_api():
    variant = select_jvm_variant(parse_gradle_module(GRADLE_MODULE_JSON))
    assert variant is not None
    assert variant.name == "jvmApiElements"
    assert variant.attributes[_USAGE] == "java-api"


def test_select_jvm_variant_falls_back_to_runtime():
    gm = parse_gradle_module(GRADLE_MODULE_JSON)
    gm.variants = [v for v in gm.variants if v.name != "jvmApiElements"]
    variant = select_jvm_variant(gm)
    assert variant is not None
    assert variant.name == "jvmRuntimeElements"


def test_select_jvm_variant_skips_other_platforms():
    gm = GradleModule(
        variants=[
            Variant(name="jsApi", attributes={_USAGE: "java-api", _PLATFORM: "js"}),
            Variant(name="plainApi", attributes={_USAGE: "java-api"}),
        ]
    )
    assert select_jvm_variant(gm).name == "plainApi"


def test_select_jvm_variant_none_cases():
    assert select_jvm_variant(None) is None
    gm = parse_gradle_module(GRADLE_MODULE_JSON)
    gm.variants = gm.variants[2:]
    assert select_jvm_variant(gm) is None


def test_dependencies_and_constraints():
    doc = json.dumps(
        {
            "variants": [
                {
                    "name": "v",
                    "dependencies": [
                        {
                            "group": "org.slf4j",
                            "module": "slf4j-api",
                            "version": {"requires": "2.0.0", "prefers": "2.0.9"},
                            "excludes": [{"group": "junit", "module": "junit"}],
                        }
                    ],
                    "dependencyConstraints": [
                        {
                            "group": "org.slf4j",
                            "module": "slf4j-api",
                            "version": {"strictly": "2.0.9"},
                        }
                    ],
                }
            ]
        }
    )
    variant = parse_gradle_module(doc).variants[0]
    dep = variant.dependencies[0]
    assert (dep.group, dep.module) == ("org.slf4j", "slf4j-api")
    assert dep.version.resolved_version() == "2.0.0"
    assert [(e.group, e.module) for e in dep.exclusions] == [("junit", "junit")]
    assert variant.dependency_constraints[0].version.resolved_version() == "2.0.9"


@pytest.mark.parametrize(
    "constraint, expected",
    [
        (GMVersionConstraint(requires="1.0", prefers="2.0", strictly="3.0"), "3.0"),
        (GMVersionConstraint(requires="1.0", prefers="2.0"), "1.0"),
        (GMVersionConstraint(prefers="2.0"), "2.0"),
        (GMVersionConstraint(), ""),
    ],
)
def test_resolved_version_order(constraint, expected):
    assert constraint.resolved_version() == expected


def test_missing_fields_default_empty():
    gm = parse_gradle_module("{}")
    assert gm == GradleModule()


@pytest.mark.parametrize(
    "doc",
    [
        "{not json",
        "[]",
        '{"variants": {}}',
        '{"formatVersion": 1}',
        '{"variants": [{"attributes": {"org.gradle.jvm.version": 8}}]}',
    ],
)
def test_invalid_documents_raise(doc):
    with pytest.raises(GradleModuleError):
        parse_gradle_module(doc)