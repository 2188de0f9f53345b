"""
Concrete lookup services backing the core resolver and classifier.
"""

from .local import current_local_addresses
from .maxmind import MaxMindAsnLookup, MaxMindCityLookup

__all__ = ["current_local_addresses", "MaxMindAsnLookup", "MaxMindCityLookup"]
