"""
Ecosystem API Routes - context detection, tab ranking and ecosystem building
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from tastegraph.config.settings import settings
from tastegraph.models.ecosystem import CulturalEcosystem, DynamicTabConfig
from tastegraph.models.vibe import CulturalProfile, ExtractedSeed, VibeContext
from tastegraph.services.candidate_fetcher import CandidateFetcher, HttpCandidateFetcher
from tastegraph.services.context_detector import detect_vibe_context
from tastegraph.services.ecosystem_engine import EcosystemEngine
from tastegraph.services.errors import EcosystemBuildError
from tastegraph.services.narrative import HttpNarrativeGenerator, NarrativeGenerator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ecosystem"])

# Lazy initialization so importing the router opens no HTTP clients
_engine: Optional[EcosystemEngine] = None
_candidate_fetcher: Optional[CandidateFetcher] = None
_narrative_generator: Optional[NarrativeGenerator] = None


def get_ecosystem_engine() -> EcosystemEngine:
    """Get or create the ecosystem engine instance."""
    global _engine
    if _engine is None:
        _engine = EcosystemEngine()
    return _engine


def get_candidate_fetcher() -> CandidateFetcher:
    global _candidate_fetcher
    if _candidate_fetcher is None:
        _candidate_fetcher = HttpCandidateFetcher(timeout=settings.FETCH_TIMEOUT_SECONDS)
    return _candidate_fetcher


def get_narrative_generator() -> Optional[NarrativeGenerator]:
    """Narrative generation is only wired when an API key is configured."""
    global _narrative_generator
    if _narrative_generator is None and settings.NARRATIVE_API_KEY:
        _narrative_generator = HttpNarrativeGenerator(timeout=settings.NARRATIVE_TIMEOUT_SECONDS)
    return _narrative_generator


async def close_collaborators() -> None:
    """Close the HTTP clients opened by the lazy collaborators."""
    global _candidate_fetcher, _narrative_generator
    for collaborator in (_candidate_fetcher, _narrative_generator):
        aclose = getattr(collaborator, "aclose", None)
        if aclose is not None:
            await aclose()
    _candidate_fetcher = None
    _narrative_generator = None


class ContextRequest(BaseModel):
    """Request model for heuristic context detection."""
    vibe: str = Field(..., min_length=1, max_length=500, description="Free-text vibe")
    seeds: List[ExtractedSeed] = Field(default_factory=list)


class EcosystemRequest(BaseModel):
    """Request model for ecosystem building."""
    vibe: str = Field(..., min_length=1, max_length=500, description="Free-text vibe")
    location_hint: str = Field(default="", max_length=200, description="City or area to search")
    context: Optional[VibeContext] = Field(None, description="Detected context, inferred from the vibe when omitted")
    seeds: List[ExtractedSeed] = Field(default_factory=list)
    profile: Optional[CulturalProfile] = Field(None, description="Personality summary from the vibe analysis")
    include_narrative: bool = Field(default=True, description="Call the narrative generator when configured")


@router.post("/context", response_model=VibeContext)
async def detect_context(request: ContextRequest) -> VibeContext:
    """Infer a vibe context with keyword heuristics."""
    return detect_vibe_context(request.vibe, request.seeds)


@router.post("/tabs", response_model=List[DynamicTabConfig])
async def compute_tabs(context: VibeContext) -> List[DynamicTabConfig]:
    """Rank content categories for a vibe context."""
    return get_ecosystem_engine().prioritizer.compute_tabs(context)


@router.post("/ecosystem", response_model=CulturalEcosystem, status_code=status.HTTP_200_OK)
async def build_ecosystem(request: EcosystemRequest) -> CulturalEcosystem:
    """
    Build a cultural ecosystem for a vibe.

    Recommendation and narrative failures degrade the result instead of
    failing the request; a vibe with no data returns the minimal ecosystem.
    """
    context = request.context or detect_vibe_context(request.vibe, request.seeds)
    generator = get_narrative_generator() if request.include_narrative else None

    try:
        return await get_ecosystem_engine().build_ecosystem(
            vibe=request.vibe,
            location_hint=request.location_hint,
            context=context,
            seeds=request.seeds,
            fetch_candidates=get_candidate_fetcher(),
            generate_narrative=generator,
            profile=request.profile,
        )
    except EcosystemBuildError as e:
        logger.error(f"Ecosystem build failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    except Exception as e:
        logger.error(f"Ecosystem processing failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Ecosystem processing failed: {str(e)}",
        )
