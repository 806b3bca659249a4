from .binder import (
    ENV_KEY,
    DataSource,
    DataSourceKind,
    bind,
    load_data,
    load_data_file,
    merge_values,
    with_environment,
)
from .model import Value, ValueKind

__all__ = [
    "Value",
    "ValueKind",
    "DataSource",
    "DataSourceKind",
    "bind",
    "load_data",
    "load_data_file",
    "merge_values",
    "with_environment",
    "ENV_KEY",
]
