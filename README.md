# ktbridge

Tools for working with Maven repositories and the Kotlin API surface of JAR
files, without a JVM. It uses only the Python standard library.

It has two parts:

- `ktbridge.maven`: Maven coordinates, repository selection, parsing of POMs,
  `maven-metadata.xml` and Gradle Module Metadata, an HTTP client that fetches
  them, and transitive dependency resolution.
- `ktbridge.metadata`: reads `@kotlin.Metadata` annotations from `.class`
  files and decodes them into a model of classes, functions, properties and
  constructors.

## Installation

```
pip install .
```

## Maven coordinates and repositories

```python
from ktbridge.maven.coord import parse_coordinate

coord = parse_coordinate("org.jetbrains.kotlinx:kotlinx-coroutines-core@1.7.3")
coord.group_path()  # "org/jetbrains/kotlinx"
coord.jar_path()    # "org/jetbrains/kotlinx/kotlinx-coroutines-core/1.7.3/kotlinx-coroutines-core-1.7.3.jar"
```

Coordinates have the form `<groupId>:<artifactId>[@<version>[@<classifier>]]`.
A malformed one raises `InvalidCoordinateError`. `Coordinate` also offers
`pom_path()`, `module_path()` and `metadata_path()`.

`ktbridge.maven.registry` defines `MAVEN_CENTRAL`, `JITPACK` and
`GOOGLE_MAVEN`. `registry_for(registries, coord)` picks the first registry
whose matcher accepts the coordinate, then the first catch-all registry, and
falls back to Maven Central. `new_custom_registry(name, base_url)` builds a
catch-all registry.

## Fetching metadata

```python
from ktbridge.maven.client import Client
from ktbridge.maven.registry import new_custom_registry
from ktbridge.maven.gmm import select_jvm_variant

client = Client(registries=[new_custom_registry("internal", "https://repo.example.com/maven2")])

pom = client.fetch_pom(coord)
meta = client.fetch_maven_metadata("org.example", "mylib")
module = client.fetch_gradle_module(coord)
variant = select_jvm_variant(module)
```

With no registries the client uses Maven Central; the default timeout is 30
seconds. `artifact_url(coord, ext)` and `metadata_url(group_id, artifact_id)`
give the URLs it requests. A missing artifact (HTTP 404) raises
`NotFoundError`; other HTTP and parse failures raise `ClientError`.

`select_jvm_variant` prefers a `java-api` variant over a `java-runtime` one and
ignores variants whose Kotlin platform type is set to something other than
`jvm`.

Documents can also be parsed directly with `parse_pom`, `parse_maven_metadata`
and `parse_gradle_module`, from bytes, text or a file object. A parsed `POM`
can be merged with its parent through `merge_parent`, and have missing
dependency versions filled from a BOM with `apply_bom`. `interpolate` replaces
`${name}` property references.

## Transitive resolution

```python
from ktbridge.maven.graph import resolve_transitive, resolve_bom

coords = resolve_transitive(client, [coord])
```

Only `compile` and `runtime` dependencies that are not optional are followed.
Exclusions (including `*` wildcards) propagate down the tree, and when the same
artifact is reached at several versions the highest one wins. Coordinates come
back in the order they were first reached, breadth first. An artifact whose POM
cannot be fetched stays in the result but is not expanded. `resolve_bom` fetches
a BOM POM.

## Kotlin metadata

```python
from ktbridge.metadata.ingest import ingest_jar

for obj in ingest_jar("mylib-1.2.3.jar"):
    print(obj.class_name, obj.kind)
    for fn in obj.functions:
        print("  fun", fn.name, "->", fn.return_type.class_name)
```

`ingest_jar_bytes(data)` does the same for a JAR held in memory; an archive that
is not a valid ZIP raises `IngestError`. Nested classes (`Outer$Inner.class`)
are not returned as top-level entries, and classes without Kotlin metadata or
with malformed data are skipped.

`extract_metadata(class_bytes)` reads the raw annotation from one class file,
raising `NoKotlinMetadataError` when there is none and `ClassFormatError` when
the data is malformed. `decode_class` and `decode_package` turn raw metadata
into an `APIObject`, raising `ProtoDecodeError` on bad data. Only public and
internal functions and properties are kept. The low-level protobuf wire reader
is in `ktbridge.metadata.wire`.

## What it does not do

- There is no command-line tool; the package is used as a library.
- The client does not resolve version ranges or `LATEST`/`RELEASE` against
  `maven-metadata.xml`; it fetches and parses the document only.
- Parent POMs and BOM imports are not fetched automatically during transitive
  resolution.
- The metadata model does not fill in JVM method descriptors, type parameter
  names of type references, or type parameter upper bounds.

## Running the tests

```
pip install ".[test]"
pytest
```