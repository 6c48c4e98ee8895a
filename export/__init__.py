"""
Outputs of the canonical table: the dashboard CSV and the bulk load into
the downstream comparison-tool store.
"""

__all__ = ["CsvExporter", "InstitutionLoader", "partition_rows", "map_value_to_type"]
