"""Utility functions for time operations."""

from datetime import datetime
from typing import Optional


def human_timestamp(moment: Optional[datetime] = None) -> str:
    """Local timestamp meant to be read by people, e.g. in a manifest."""
    if moment is None:
        moment = datetime.now()
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def log_stamp() -> str:
    """Timestamp safe for use in file names."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def format_duration(seconds: float) -> str:
    """Format duration in human readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"
