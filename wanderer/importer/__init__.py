"""
Bulk catalog import.

Responsibilities:
- Parse semicolon-delimited CSV exports into field-keyed records.
- Map records onto one of the importable catalog tables.
- Insert in fixed-size batches, tolerating and counting failed batches.
"""
