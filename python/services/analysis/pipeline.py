"""
AnalysisPipeline - per-gemstone image analysis and batch driver.

Flow for one gemstone:
    load -> sample -> load images
         -> {detect cut, detect color, select primary} (joined)
         -> optional content -> consolidate -> save (retried)

Every model call goes through an ExecutionGuard. Failures are typed
exceptions inside `analyze` and become AnalysisFailure values at the
`run_pipeline` boundary, so one gemstone never aborts a batch.
"""

import asyncio
import random
import time
from typing import Dict, List, Optional, Sequence, Union

from core.exceptions import AppException, InsufficientInputError, PersistenceError, AnalysisTimeoutError
from core.logging import log_error, log_failure
from infrastructure.images import ImageLoader
from infrastructure.vision import VisionModel
from models.domain.analysis import AttributeKind, ConsolidatedAnalysis, Provenance
from models.domain.batch import AnalysisFailure, BatchSummary
from models.domain.gemstone import Gemstone
from models.domain.policy import ReviewPolicy, SamplingPolicy, SelectionPolicy, policies_from_settings
from repositories import AnalysisRepository, GemstoneImagesRepository, GemstonesRepository
from services.analysis.consolidation import consolidate
from services.analysis.content import ContentGenerator
from services.analysis.detector import AttributeDetector
from services.analysis.guard import ExecutionGuard
from services.analysis.persistence import AnalysisPersistence
from services.analysis.pricing import UsageMeter
from services.analysis.sampler import ImageSampler
from services.analysis.selector import PrimaryImageSelector

import logging

logger = logging.getLogger(__name__)

PipelineOutcome = Union[ConsolidatedAnalysis, AnalysisFailure]


class AnalysisPipeline:
    """
    Runs the analysis for one gemstone or a batch of them.

    The model client is constructed once by the caller and injected here.
    """

    def __init__(
        self,
        gemstones_repo: GemstonesRepository,
        images_repo: GemstoneImagesRepository,
        analysis_repo: AnalysisRepository,
        vision_model: VisionModel,
        text_model: Optional[VisionModel] = None,
        image_loader: Optional[ImageLoader] = None,
        sampling_policy: SamplingPolicy = None,
        selection_policy: SelectionPolicy = None,
        review_policy: ReviewPolicy = None,
        image_detail: str = "low",
        detection_timeout: float = 30.0,
        selection_timeout: float = 60.0,
        generation_timeout: float = 90.0,
        generate_content: bool = False,
        persistence_retries: int = 2,
        retry_delay: float = 0.5,
        batch_concurrency: int = 3,
        rng: Optional[random.Random] = None,
    ):
        self.gemstones_repo = gemstones_repo
        self.images_repo = images_repo
        self.vision_model = vision_model
        self.text_model = text_model or vision_model
        self.image_loader = image_loader or ImageLoader(inline=False)

        self.sampler = ImageSampler(sampling_policy, rng=rng)
        self.detector = AttributeDetector(vision_model, image_detail=image_detail)
        self.selector = PrimaryImageSelector(vision_model, selection_policy, image_detail=image_detail)
        self.content_generator = ContentGenerator(self.text_model, image_detail=image_detail)
        self.persistence = AnalysisPersistence(gemstones_repo, images_repo, analysis_repo)
        self.review_policy = review_policy or ReviewPolicy()

        self.detection_timeout = detection_timeout
        self.selection_timeout = selection_timeout
        self.generation_timeout = generation_timeout
        self.generate_content = generate_content
        self.persistence_retries = persistence_retries
        self.retry_delay = retry_delay
        self.batch_concurrency = batch_concurrency

        logger.info(
            f"[Analysis] Pipeline ready (vision={vision_model.model_id}, "
            f"content={'on' if generate_content else 'off'})"
        )

    @classmethod
    def from_settings(
        cls,
        settings,
        gemstones_repo: GemstonesRepository,
        images_repo: GemstoneImagesRepository,
        analysis_repo: AnalysisRepository,
        vision_model: VisionModel,
        text_model: Optional[VisionModel] = None,
    ) -> "AnalysisPipeline":
        """Build a pipeline with policies, timeouts and batch options from Settings."""
        sampling, selection, review = policies_from_settings(settings)
        return cls(
            gemstones_repo=gemstones_repo,
            images_repo=images_repo,
            analysis_repo=analysis_repo,
            vision_model=vision_model,
            text_model=text_model,
            image_loader=ImageLoader(
                inline=settings.inline_images,
                timeout=settings.image_fetch_timeout_seconds,
            ),
            sampling_policy=sampling,
            selection_policy=selection,
            review_policy=review,
            image_detail=settings.image_detail,
            detection_timeout=settings.detection_timeout_seconds,
            selection_timeout=settings.selection_timeout_seconds,
            generation_timeout=settings.generation_timeout_seconds,
            generate_content=settings.generate_content,
            persistence_retries=settings.persistence_retries,
            batch_concurrency=settings.batch_concurrency,
        )

    # ==================== Single gemstone ====================

    async def load_gemstone(self, gemstone_id: str) -> Gemstone:
        """Declared metadata plus photos in display order."""
        record = await self.gemstones_repo.get_declared(gemstone_id)
        photos = await self.images_repo.get_by_gemstone(gemstone_id)
        return Gemstone(
            id=record["id"],
            serial_number=record.get("serial_number"),
            declared=record["declared"],
            photos=photos,
        )

    async def analyze(self, gemstone_id: str) -> ConsolidatedAnalysis:
        """
        Analyze and persist one gemstone.

        Raises:
            GemstoneNotFoundError, InsufficientInputError, MalformedDetectionError,
            MalformedSelectionError, MalformedContentError, AnalysisTimeoutError,
            ModelServiceError, PersistenceError
        """
        start = time.perf_counter()
        gemstone = await self.load_gemstone(gemstone_id)
        if not gemstone.has_photos:
            raise InsufficientInputError(
                "Gemstone has no photographs to analyze", step="sample", gemstone_id=gemstone_id
            )

        sample = self.sampler.sample(gemstone.photos)
        images = await self.image_loader.load(sample.urls)
        declared = gemstone.declared
        logger.info(
            f"[Analysis] {gemstone.serial_number or gemstone_id}: "
            f"{len(sample)}/{sample.total} photos, declared {declared.summary()}"
        )

        meter = UsageMeter()
        guard = ExecutionGuard(self.vision_model.model_id)

        results = await asyncio.gather(
            guard.run(
                self.detector.detect(AttributeKind.CUT, images, declared.cut, meter),
                step="detect_cut",
                gemstone_id=gemstone_id,
                timeout=self.detection_timeout,
            ),
            guard.run(
                self.detector.detect(AttributeKind.COLOR, images, declared.color, meter),
                step="detect_color",
                gemstone_id=gemstone_id,
                timeout=self.detection_timeout,
            ),
            guard.run(
                self.selector.select_primary(images, declared, sample.mapping, meter),
                step="select_primary",
                gemstone_id=gemstone_id,
                timeout=self.selection_timeout,
            ),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            for extra in errors[1:]:
                logger.warning(f"[Analysis] {gemstone_id} also failed: {type(extra).__name__}: {extra}")
            raise errors[0]
        cut, color, selection = results

        content = None
        if self.generate_content:
            content = await guard.run(
                self.content_generator.generate(
                    declared,
                    detected_cut=cut.detected_value,
                    detected_color=color.detected_value,
                    images=images,
                    meter=meter,
                ),
                step="generate_content",
                gemstone_id=gemstone_id,
                timeout=self.generation_timeout,
                model=self.text_model.model_id,
            )

        provenance = Provenance(
            model_version=self.vision_model.model_id,
            images_analyzed=len(sample),
            duration_ms=int((time.perf_counter() - start) * 1000),
            cost_usd=meter.cost_usd,
            prompt_tokens=meter.prompt_tokens,
            completion_tokens=meter.completion_tokens,
        )
        analysis = consolidate(
            gemstone_id,
            [cut, color],
            selection,
            provenance,
            content=content,
            policy=self.review_policy,
        )

        await self._save_with_retry(gemstone_id, analysis)
        return analysis

    async def run_pipeline(self, gemstone_id: str) -> PipelineOutcome:
        """
        Analyze one gemstone and never raise.

        Returns:
            ConsolidatedAnalysis on success, AnalysisFailure otherwise
        """
        try:
            analysis = await self.analyze(gemstone_id)
        except AnalysisTimeoutError as e:
            log_failure(logger, gemstone_id, e.code, e.message, e.step, level=logging.WARNING)
            return AnalysisFailure.from_exception(gemstone_id, e)
        except AppException as e:
            log_failure(logger, gemstone_id, e.code, e.message, getattr(e, "step", None))
            return AnalysisFailure.from_exception(gemstone_id, e)
        except Exception as e:
            log_error(logger, e, context=f"Analysis {gemstone_id}")
            return AnalysisFailure.from_exception(gemstone_id, e)

        logger.info(
            f"[Analysis] {gemstone_id} done: cut={analysis.cut.detected_value} "
            f"color={analysis.color.detected_value} "
            f"confidence={analysis.aggregate_confidence:.2f} needs_review={analysis.needs_review}"
        )
        return analysis

    async def _save_with_retry(self, gemstone_id: str, analysis: ConsolidatedAnalysis) -> None:
        attempts = self.persistence_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                await self.persistence.save(gemstone_id, analysis)
                return
            except PersistenceError as e:
                if attempt == attempts:
                    raise
                logger.warning(
                    f"[Analysis] Save attempt {attempt}/{attempts} failed for {gemstone_id}: {e.message}"
                )
                if self.retry_delay:
                    await asyncio.sleep(self.retry_delay * attempt)

    # ==================== Batch ====================

    async def pending_gemstones(self, limit: int = 10) -> List[Dict]:
        """Gemstones not analyzed yet."""
        return await self.gemstones_repo.get_pending(limit)

    async def run_batch(self, gemstone_ids: Sequence[str], concurrency: Optional[int] = None) -> BatchSummary:
        """
        Run the pipeline for many gemstones with bounded concurrency.
        A failed gemstone is recorded and the batch continues.
        """
        width = max(1, concurrency or self.batch_concurrency)
        semaphore = asyncio.Semaphore(width)
        start = time.perf_counter()

        logger.info(f"[Analysis] Batch of {len(gemstone_ids)} gemstones, concurrency {width}")

        async def run_one(gemstone_id: str) -> PipelineOutcome:
            async with semaphore:
                return await self.run_pipeline(gemstone_id)

        outcomes = await asyncio.gather(*(run_one(gid) for gid in gemstone_ids))

        summary = BatchSummary(total=len(gemstone_ids))
        confidences = []
        for outcome in outcomes:
            if isinstance(outcome, AnalysisFailure):
                summary.failed += 1
                summary.failures.append(outcome)
                continue

            summary.successful += 1
            if outcome.needs_review:
                summary.flagged_for_review += 1
            if outcome.provenance.cost_usd:
                summary.total_cost_usd += outcome.provenance.cost_usd
            confidences.append(outcome.aggregate_confidence)
            summary.results.append(outcome.summary())

        summary.total_time_sec = time.perf_counter() - start
        if confidences:
            summary.avg_confidence = sum(confidences) / len(confidences)

        logger.info(
            f"[Analysis] Batch done: {summary.successful} ok, {summary.failed} failed, "
            f"{summary.flagged_for_review} flagged, ${summary.total_cost_usd:.4f}"
        )
        if summary.failures:
            logger.info(f"[Analysis] Failures by kind: {summary.failures_by_kind}")
        return summary

    async def run_pending(self, limit: int = 10, concurrency: Optional[int] = None) -> BatchSummary:
        """Discover unanalyzed gemstones and run them as one batch."""
        pending = await self.pending_gemstones(limit)
        return await self.run_batch([row["id"] for row in pending], concurrency)
