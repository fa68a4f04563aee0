"""Reports bundled with the package."""

from typing import Optional

from .config import ReportConfig
from .filters.options import school_option_source
from .providers.mock import SCHOOL_DATA_KEY, MockReportProvider

SCHOOL_FILTER_KEYS = ("studentClass", "gender", "house")


def school_report(delay: Optional[float] = None) -> ReportConfig:
    """Student list filterable by class, gender and house."""
    return ReportConfig(
        get_report=MockReportProvider.school(delay=delay),
        data_key=SCHOOL_DATA_KEY,
        allowed_filter_keys=SCHOOL_FILTER_KEYS,
        option_source=school_option_source(),
        title="School Data",
    )
