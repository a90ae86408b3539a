"""
schemaguard - schema version detection and consent-gated migrations for
embedded DuckDB databases.
"""

__version__ = "1.0.0"
