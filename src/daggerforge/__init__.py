"""
DaggerForge - Search, build and manage DaggerForge adversary and environment cards.
"""

from .counter import AdversaryCounter
from .models import Adversary, AdversaryFeature, Environment, EnvironmentFeature
from .search import SearchEngine, SearchFilters, fuzzy_score
from .storage import DataManager, DataManagerError

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("daggerforge")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = [
    "AdversaryCounter",
    "Adversary",
    "AdversaryFeature",
    "Environment",
    "EnvironmentFeature",
    "SearchEngine",
    "SearchFilters",
    "fuzzy_score",
    "DataManager",
    "DataManagerError",
]
