"""codelineage - symbol evolution and reference analysis across languages."""

__version__ = "0.1.0"
