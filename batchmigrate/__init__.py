"""
Batch Migration Engine

Moves tabular data between delimited/XML files and relational databases in
fixed-size batches.

Supports:
- File to file conversion (CSV and XML, either direction)
- Loading files into existing database tables
- Exporting tables or raw queries to files
- Database to database copies, creating the target table if absent
- Column discovery, value coercion and batched writes
"""

__version__ = "0.1.0"
