"""schema-layout: layout engine for database object graph diagrams."""

__version__ = "0.1.0"
