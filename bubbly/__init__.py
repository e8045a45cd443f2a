"""Core data model for resources: contexts, inputs, data blocks, outputs, schema tables and resource blocks."""

__version__ = "0.1.0"

__all__ = ["context", "inputs", "data", "types", "table", "resource"]