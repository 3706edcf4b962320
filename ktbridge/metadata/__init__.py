"""Extraction of the Kotlin API surface from @kotlin.Metadata in class files and JARs."""