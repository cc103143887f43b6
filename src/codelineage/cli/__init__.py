"""codelineage command line interface."""
