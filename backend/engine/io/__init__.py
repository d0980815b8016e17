from .rows_reader import (
    EXPORT_COLUMNS,
    forest_to_dataframe,
    read_rows_dataframe,
    read_rows_tabular,
)

__all__ = [
    "EXPORT_COLUMNS",
    "forest_to_dataframe",
    "read_rows_dataframe",
    "read_rows_tabular",
]
