"""Lookup of valid filter values."""

from typing import Dict, List, Mapping, Optional, Sequence


class FilterOptionSource:
    """
    Pure table of filter key -> display name -> valid options.

    Options are looked up by the filter's semantic (display) name; the
    key-to-name table translates URL/API keys such as ``studentClass`` into
    names such as ``class``. Keys without an explicit display name use the
    key itself.

    Example:
        source = FilterOptionSource(
            options={"class": ["5", "6"], "gender": ["Male", "Female"]},
            display_names={"studentClass": "class"},
        )
        source.get_options("class")          # ["5", "6"]
        source.options_for_key("studentClass")  # ["5", "6"]
    """

    def __init__(
        self,
        options: Mapping[str, Sequence[str]],
        display_names: Optional[Mapping[str, str]] = None,
    ):
        self._options: Dict[str, List[str]] = {
            name: [str(v) for v in values] for name, values in options.items()
        }
        self._display_names: Dict[str, str] = dict(display_names or {})

    def display_name(self, key: str) -> str:
        return self._display_names.get(key, key)

    def get_options(self, semantic_name: str) -> List[str]:
        """Valid values for a semantic filter name; unknown names give []."""
        return list(self._options.get(semantic_name, []))

    def options_for_key(self, key: str) -> List[str]:
        return self.get_options(self.display_name(key))

    def valid_options(self, keys: Sequence[str]) -> Dict[str, List[str]]:
        """Current option lists for each of ``keys``."""
        return {key: self.options_for_key(key) for key in keys}

    def __repr__(self) -> str:
        return (
            f"FilterOptionSource(options={self._options}, "
            f"display_names={self._display_names})"
        )


def school_option_source() -> FilterOptionSource:
    """Option table for the bundled school report."""
    return FilterOptionSource(
        options={
            "class": ["5", "6", "7", "8", "9", "10"],
            "gender": ["Male", "Female"],
            "house": ["Red", "Green", "Blue", "Yellow"],
        },
        display_names={
            "studentClass": "class",
            "gender": "gender",
            "house": "house",
        },
    )
