"""HTTP request primitives, routing context and middleware chaining."""

__version__ = "0.1.0"