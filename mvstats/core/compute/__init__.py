"""
Shared compute infrastructure for mvstats.

IMPORTANT: This is NOT where the testing backends live. Those go in
inference/backends/. This module contains shared, domain-free helpers.
"""

from mvstats.core.compute.timing import Timer

__all__ = [
    "Timer",
]
