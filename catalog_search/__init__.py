"""catalog-search: hybrid semantic + fuzzy catalog search."""

__version__ = "1.0.0"
