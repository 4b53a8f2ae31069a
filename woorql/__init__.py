"""Parser for the WQL query language and response schemas for a temporal entity database."""

__version__ = "0.1.0"

__all__ = ["algebra", "clauses", "parser", "responses", "select", "tx", "types", "values"]