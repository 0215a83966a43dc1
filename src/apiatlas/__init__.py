"""API Atlas - drill-down explorer for hierarchical API catalogs."""

__version__ = "0.1.0"
