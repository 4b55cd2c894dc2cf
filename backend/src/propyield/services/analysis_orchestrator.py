"""Analysis orchestrator - sequences the property monetization pipeline.

Steps run strictly in order (see ``PipelineStep``):

    RECEIVE_REQUEST -> RESOLVE_COORDINATES -> RESOLVE_LOCATION ->
    FETCH_NARRATIVE -> EXTRACT_MEASUREMENTS -> REQUEST_STRUCTURED_ANALYSIS ->
    VALIDATE_REVENUE -> VERIFY_COVERAGE -> COMPOSE_RESULT

External calls (geocoding, vision narrative, structured analysis) are the
only suspension points.  Each is bounded by a timeout; a failure or timeout
aborts the request with ``ExternalDependencyError``.  Cancellation is never
caught here and aborts the whole request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from propyield.agents.analysis_agent import PropertyAnalysisAgent
from propyield.agents.narrative_agent import VisionNarrativeAgent, satellite_image_url
from propyield.domain.enums import ASSET_SERVICE_CATEGORY, PipelineStep
from propyield.domain.errors import AnalysisInputError, ExternalDependencyError
from propyield.domain.market_reference import DEFAULT_MARKET_REFERENCE, MarketReference
from propyield.domain.schemas import (
    AnalysisRequest,
    AnalysisResult,
    Coordinates,
    LocationInfo,
    PropertyAnalysis,
    PropertyDetails,
)
from propyield.services.coverage_verifier import CoverageVerifier, summarize_availability
from propyield.services.geo_rate_estimator import GeoRateEstimator
from propyield.services.geocoding_service import GeocodingError, GeocodingService, GeoResult
from propyield.services.measurement_extractor import MeasurementExtractor
from propyield.services.opportunity_normalizer import parse_property_analysis
from propyield.services.property_classifier import (
    classify_address,
    classify_narrative,
    normalize_property_type,
    resolve_property_type,
    restriction_notes,
)
from propyield.services.revenue_validator import RevenueValidator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisOrchestrator:
    """Runs one analysis request end to end.

    Holds no per-request state, so a single instance can serve concurrent
    requests.
    """

    def __init__(
        self,
        narrative_agent: VisionNarrativeAgent,
        analysis_agent: PropertyAnalysisAgent,
        geocoder: Optional[GeocodingService] = None,
        reference: MarketReference = DEFAULT_MARKET_REFERENCE,
        extractor: Optional[MeasurementExtractor] = None,
        verifier: Optional[CoverageVerifier] = None,
        maps_api_key: str = "",
        satellite_zoom: int = 20,
        satellite_image_size: str = "640x640",
        timeout: float = 60.0,
    ) -> None:
        self._narrative_agent = narrative_agent
        self._analysis_agent = analysis_agent
        self._geocoder = geocoder
        self._extractor = extractor or MeasurementExtractor()
        self._estimator = GeoRateEstimator(reference)
        self._validator = RevenueValidator(reference, self._estimator)
        self._verifier = verifier or CoverageVerifier()
        self._maps_api_key = maps_api_key
        self._satellite_zoom = satellite_zoom
        self._satellite_image_size = satellite_image_size
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "AnalysisOrchestrator":
        """Wire the production collaborators from application settings."""
        timeout = settings.external_timeout_seconds
        geocoder = (
            GeocodingService(settings.google_maps_api_key, timeout=timeout)
            if settings.google_maps_api_key
            else None
        )
        return cls(
            narrative_agent=VisionNarrativeAgent(settings.vision_model, timeout=timeout),
            analysis_agent=PropertyAnalysisAgent(settings.analysis_model, timeout=timeout),
            geocoder=geocoder,
            maps_api_key=settings.google_maps_api_key,
            satellite_zoom=settings.satellite_zoom,
            satellite_image_size=settings.satellite_image_size,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def run(self, request: AnalysisRequest) -> AnalysisResult:
        """Execute every step for *request* and return the composite result.

        Raises:
            AnalysisInputError: Neither address nor coordinates resolve.
            ExternalDependencyError: An external collaborator failed.
        """
        self._log_step(PipelineStep.RECEIVE_REQUEST)
        address = (request.address or "").strip()
        fallback_used = False

        # ── Coordinates ──────────────────────────────────────────────
        self._log_step(PipelineStep.RESOLVE_COORDINATES)
        geo: Optional[GeoResult] = None
        if request.coordinates is not None:
            coordinates = request.coordinates
        elif address:
            geo = await self._geocode(address)
            coordinates = Coordinates(lat=geo.lat, lng=geo.lng)
        else:
            raise AnalysisInputError("Either an address or coordinates must be provided")

        # ── Location ─────────────────────────────────────────────────
        self._log_step(PipelineStep.RESOLVE_LOCATION)
        if geo is not None:
            location = geo.to_location_info()
        else:
            location, used_fallback = await self._reverse_geocode(coordinates)
            fallback_used = fallback_used or used_fallback
        if not address:
            address = location.describe()

        # ── Narrative ────────────────────────────────────────────────
        self._log_step(PipelineStep.FETCH_NARRATIVE)
        narrative = ""
        image_ref = request.satellite_image_ref or self._satellite_url(coordinates)
        if image_ref:
            result = await self._call_external(
                PipelineStep.FETCH_NARRATIVE,
                self._narrative_agent.describe(image_ref, address),
            )
            if not result.ok:
                raise ExternalDependencyError(PipelineStep.FETCH_NARRATIVE, result.error or "unknown error")
            narrative = result.data
        else:
            logger.warning("No image reference and no Maps key; analysing without a narrative")
            fallback_used = True

        # ── Measurements + market ────────────────────────────────────
        self._log_step(PipelineStep.EXTRACT_MEASUREMENTS)
        measurements = self._extractor.extract(narrative)
        market = self._estimator.estimate(coordinates)
        hinted_type = (
            normalize_property_type(request.property_type)
            or classify_address(request.address)
            or classify_narrative(narrative)
        )

        # ── Structured analysis ──────────────────────────────────────
        self._log_step(PipelineStep.REQUEST_STRUCTURED_ANALYSIS)
        result = await self._call_external(
            PipelineStep.REQUEST_STRUCTURED_ANALYSIS,
            self._analysis_agent.analyze(
                address=address,
                location=location,
                market=market,
                measurements=measurements,
                narrative=narrative,
                property_type=hinted_type,
                property_size_sqft=request.property_size_sqft,
            ),
        )
        if not result.ok:
            raise ExternalDependencyError(PipelineStep.REQUEST_STRUCTURED_ANALYSIS, result.error or "unknown error")
        try:
            analysis = parse_property_analysis(result.data)
        except ValueError as exc:
            raise ExternalDependencyError(
                PipelineStep.REQUEST_STRUCTURED_ANALYSIS, f"Invalid structured analysis: {exc}"
            ) from exc

        # ── Revenue validation ───────────────────────────────────────
        self._log_step(PipelineStep.VALIDATE_REVENUE)
        details = PropertyDetails(
            type=resolve_property_type(
                explicit=request.property_type,
                analysis_type=analysis.property_type,
                address=request.address,
                narrative=narrative,
            ),
            size_sqft=request.property_size_sqft,
            has_hoa=request.has_hoa,
        )
        validated, adjustments = self._validator.validate(analysis, coordinates, details.type)
        if not validated.restrictions:
            notes = restriction_notes(details.type)
            if notes:
                validated.restrictions = "; ".join(notes)

        # ── Provider coverage ────────────────────────────────────────
        self._log_step(PipelineStep.VERIFY_COVERAGE)
        availability, alternatives = await self._verify_coverage(validated, location, details)

        # ── Result ───────────────────────────────────────────────────
        self._log_step(PipelineStep.COMPOSE_RESULT)
        composed = AnalysisResult(
            **validated.model_dump(),
            location_info=location,
            property_details=details,
            service_availability=availability,
            provider_alternatives=alternatives,
            image_analysis=measurements,
            market_data=market,
            revenue_adjustments=adjustments,
            estimated_data=market.estimated_data,
            fallback_used=fallback_used,
        )
        logger.info(
            "Analysis complete for %s: type=%s monthly=$%.2f adjustments=%d fallback=%s",
            location.describe(),
            details.type.value,
            composed.property_valuation.total_monthly_revenue if composed.property_valuation else 0.0,
            len(adjustments),
            fallback_used,
        )
        return composed

    # ------------------------------------------------------------------
    # External-call helpers
    # ------------------------------------------------------------------

    async def _call_external(self, step: PipelineStep, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Step %s timed out after %.1fs", step.value, self._timeout)
            raise ExternalDependencyError(step, f"timed out after {self._timeout:g}s") from exc
        except GeocodingError as exc:
            raise ExternalDependencyError(step, str(exc)) from exc

    async def _geocode(self, address: str) -> GeoResult:
        if self._geocoder is None:
            raise ExternalDependencyError(
                PipelineStep.RESOLVE_COORDINATES, "Geocoding is not configured (missing Maps API key)"
            )
        geo = await self._call_external(PipelineStep.RESOLVE_COORDINATES, self._geocoder.geocode(address))
        if geo is None:
            raise AnalysisInputError(f"Address could not be resolved: {address}")
        return geo

    async def _reverse_geocode(self, coordinates: Coordinates) -> tuple[LocationInfo, bool]:
        """Location for *coordinates*; the flag is True when only coordinates are known."""
        if self._geocoder is not None:
            geo = await self._call_external(
                PipelineStep.RESOLVE_LOCATION,
                self._geocoder.reverse_geocode(coordinates.lat, coordinates.lng),
            )
            if geo is not None:
                return geo.to_location_info(), False
            logger.warning("No reverse-geocoding result for (%s, %s)", coordinates.lat, coordinates.lng)
        else:
            logger.warning("Geocoding not configured; location limited to coordinates")
        return LocationInfo(coordinates=coordinates), True

    def _satellite_url(self, coordinates: Coordinates) -> Optional[str]:
        if not self._maps_api_key:
            return None
        return satellite_image_url(
            coordinates,
            self._maps_api_key,
            zoom=self._satellite_zoom,
            size=self._satellite_image_size,
        )

    async def _verify_coverage(
        self,
        analysis: PropertyAnalysis,
        location: LocationInfo,
        details: PropertyDetails,
    ) -> tuple[str, dict[str, list[str]]]:
        """Replace each asset's suggested providers with verified candidates.

        Returns the availability summary and, for assets left with no
        available provider, the registered alternatives available here.
        """
        assets = [asset for asset in analysis.assets() if asset.providers]
        verified = await asyncio.gather(
            *(
                asyncio.to_thread(
                    self._verifier.filter_candidates,
                    ASSET_SERVICE_CATEGORY[asset.category],
                    asset.providers,
                    location,
                    details,
                )
                for asset in assets
            )
        )
        alternatives: dict[str, list[str]] = {}
        for asset, candidates in zip(assets, verified):
            asset.providers = candidates
            if any(c.available for c in candidates):
                continue
            others = self._verifier.alternative_providers(
                ASSET_SERVICE_CATEGORY[asset.category],
                [c.provider_id for c in candidates],
                location,
                details,
            )
            if others:
                alternatives[asset.category.value] = others
        summary = summarize_availability({asset.category.value: asset.providers for asset in assets})
        return summary, alternatives

    @staticmethod
    def _log_step(step: PipelineStep) -> None:
        logger.debug("Analysis step: %s", step.value)
