"""Maven coordinates, registries, POM and metadata parsing, an HTTP client and dependency resolution."""