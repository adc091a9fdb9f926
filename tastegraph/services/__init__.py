"""Cultural ecosystem services package."""

from .errors import (  # noqa: F401
    EcosystemBuildError,
    EcosystemContractError,
    EmptyInputFailure,
    FetchFailure,
    NarrativeFailure,
)
from .telemetry import (  # noqa: F401
    CollaboratorMetrics,
    TelemetryStore,
    get_telemetry_store,
)
from .prioritizer import (  # noqa: F401
    CategoryPrioritizer,
    get_dynamic_tabs,
)
from .connection_discoverer import ConnectionDiscoverer  # noqa: F401
from .theme_extractor import ThemeExtractor  # noqa: F401
from .ecosystem_scorer import EcosystemScorer  # noqa: F401
from .insight_synthesizer import InsightSynthesizer  # noqa: F401
from .context_detector import detect_vibe_context  # noqa: F401
from .candidate_fetcher import (  # noqa: F401
    CandidateFetcher,
    HttpCandidateFetcher,
)
from .narrative import (  # noqa: F401
    HttpNarrativeGenerator,
    NarrativeGenerator,
)
from .ecosystem_engine import (  # noqa: F401
    EcosystemEngine,
    build_ecosystem,
    minimal_ecosystem,
)

__all__ = [
    "EcosystemBuildError",
    "EcosystemContractError",
    "EmptyInputFailure",
    "FetchFailure",
    "NarrativeFailure",
    "CollaboratorMetrics",
    "TelemetryStore",
    "get_telemetry_store",
    "CategoryPrioritizer",
    "get_dynamic_tabs",
    "ConnectionDiscoverer",
    "ThemeExtractor",
    "EcosystemScorer",
    "InsightSynthesizer",
    "detect_vibe_context",
    "CandidateFetcher",
    "HttpCandidateFetcher",
    "HttpNarrativeGenerator",
    "NarrativeGenerator",
    "EcosystemEngine",
    "build_ecosystem",
    "minimal_ecosystem",
]
