"""
Output Generation and Delivery.

This module writes the canonical records of a batch run:

- csv_export: CSV file with the fixed header order

Example:
    from speedometer.delivery import export_csv

    count = export_csv(batch.records, Path("output.csv"))
"""

from speedometer.delivery.csv_export import export_csv, record_to_row, write_records

__all__ = ["export_csv", "record_to_row", "write_records"]
