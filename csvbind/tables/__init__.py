from .reader import TableData, TableReadError, read_table_file, read_table_text

__all__ = ["TableData", "TableReadError", "read_table_file", "read_table_text"]
