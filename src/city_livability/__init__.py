"""City Livability.

Turns tagged city news into per-city quality of life, safety, economy and
culture scores, and serves the latest news and a worst-first city ranking.
"""

__version__ = "0.1.0"

from .core.errors import InfrastructureError, InvalidArgument, LivabilityError, NotFound, ValidationError
from .core.models import CityScore, NewsCandidate, NewsItem
from .service import ScoringService

__all__ = [
    "CityScore",
    "InfrastructureError",
    "InvalidArgument",
    "LivabilityError",
    "NewsCandidate",
    "NewsItem",
    "NotFound",
    "ScoringService",
    "ValidationError",
]
