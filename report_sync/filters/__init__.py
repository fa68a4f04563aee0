"""Filter option lookup and staged filter editing."""

from .editor import FilterControl, FilterEditor
from .options import FilterOptionSource, school_option_source

__all__ = [
    "FilterEditor",
    "FilterControl",
    "FilterOptionSource",
    "school_option_source",
]
