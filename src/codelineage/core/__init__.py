"""Core utilities: errors, logging, directory excludes."""
