"""Maven repository client, dependency resolution and Kotlin metadata extraction from JAR files."""

__version__ = "0.1.0"