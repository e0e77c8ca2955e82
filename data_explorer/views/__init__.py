from .data_table import data_table_module
from .histogram import histogram_module
from .reporter_previewer import reporter_previewer_module

__all__ = ["data_table_module", "histogram_module", "reporter_previewer_module"]
