"""
Performance-optimized facial color analysis.

Wraps FacialColorAnalyzer with downscaling, content-keyed caching,
background thread offload with a timeout, batch scheduling and the quick
colors fast path. DecodeFailureError and AnalysisTimeoutError are raised to
the caller here; every other failure has already become a low-confidence
profile inside the analyzer.
"""
import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from facecolor.config import Config, config
from facecolor.errors import AnalysisTimeoutError, DecodeFailureError
from facecolor.schemas import FacialColorProfile
from facecolor.services.analysis import FacialColorAnalyzer
from facecolor.services.cache import ProfileCache
from facecolor.services.fingerprint import build_profile_cache_key, compute_sha256
from facecolor.services.imaging import ImageInput, load_image, read_image_bytes
from facecolor.services.quick_colors import fallback_recommendations, quick_color_palette
from facecolor.utils.ids import generate_request_id
from facecolor.utils.logging import StructuredLogger, get_logger
from facecolor.utils.metrics import get_metrics_collector, performance_monitor


ProgressCallback = Callable[[float], None]


@dataclass
class AnalysisOptions:
    """Per-call options; defaults come from Config."""
    use_background: bool = field(default_factory=lambda: config.USE_BACKGROUND)
    enable_caching: bool = field(default_factory=lambda: config.ENABLE_CACHING)
    max_image_pixels: int = field(default_factory=lambda: config.MAX_IMAGE_PIXELS)
    timeout_ms: int = field(default_factory=lambda: config.TIMEOUT_MS)
    progress_callback: Optional[ProgressCallback] = None
    
    def __post_init__(self):
        if not Config.validate_max_pixels(self.max_image_pixels):
            raise ValueError(f"max_image_pixels out of range: {self.max_image_pixels}")
        if not Config.validate_timeout_ms(self.timeout_ms):
            raise ValueError(f"timeout_ms out of range: {self.timeout_ms}")


class PerformanceOptimizedFacialAnalysis:
    """Async entry point for facial color analysis."""
    
    def __init__(self,
                 analyzer: FacialColorAnalyzer,
                 cache: Optional[ProfileCache] = None,
                 max_workers: Optional[int] = None,
                 batch_size: Optional[int] = None,
                 batch_pause_ms: Optional[int] = None):
        self.analyzer = analyzer
        self.cache = cache or ProfileCache(ttl_seconds=config.CACHE_TTL, max_size=config.CACHE_MAX_SIZE)
        self.batch_size = batch_size or config.BATCH_SIZE
        workers = config.WORKERS if max_workers is None else max_workers
        # Timeouts count from submission, so a batch group must not queue
        self._executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=max(workers, self.batch_size), thread_name_prefix="facecolor")
            if workers > 0 else None
        )
        self.batch_pause_ms = config.BATCH_PAUSE_MS if batch_pause_ms is None else batch_pause_ms
        self.logger = get_logger()
        self.metrics = get_metrics_collector()
    
    @property
    def background_available(self) -> bool:
        return self._executor is not None
    
    async def initialize(self) -> None:
        """Purge expired cache entries and pre-warm the detector model."""
        self.cache.clean_expired()
        result = await self._run_blocking(self.analyzer.detector_service.initialize)
        if result.success:
            self.logger.info("Facial analysis models pre-warmed", extra={"detector": result.detector})
        else:
            self.logger.warning("Model pre-warming failed", extra={"error": result.error})
    
    async def analyze(self, image_input: ImageInput,
                      options: Optional[AnalysisOptions] = None) -> FacialColorProfile:
        """
        Analyze one image with caching, downscaling and optional offload.
        
        Raises:
            DecodeFailureError: Unreadable input
            AnalysisTimeoutError: Background execution exceeded timeout_ms
        """
        options = options or AnalysisOptions()
        log = self.logger.bind(request_id=generate_request_id("analyze"))
        start_time = time.time()
        report = self._progress_reporter(options.progress_callback)
        report(10)
        
        try:
            raw = read_image_bytes(image_input)
        except DecodeFailureError:
            self.metrics.increment_failure_count("decode_failures")
            raise
        
        cache_key = build_profile_cache_key(compute_sha256(raw), options.max_image_pixels)
        
        if options.enable_caching:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.metrics.increment_cache_hit()
                log.info("Using cached facial analysis result")
                report(100)
                return cached
            self.metrics.increment_cache_miss()
        
        report(20)
        
        def work() -> FacialColorProfile:
            return self._run_pipeline(raw, options.max_image_pixels, report)
        
        try:
            if options.use_background and self.background_available:
                profile = await self._run_with_timeout(work, options.timeout_ms, log)
            else:
                profile = work()
        except DecodeFailureError as e:
            self.metrics.increment_failure_count("decode_failures")
            log.warning("Image decode failed", extra={"error": str(e)})
            raise
        
        report(90)
        if options.enable_caching:
            self.cache.set(cache_key, profile)
        
        duration_ms = (time.time() - start_time) * 1000
        self.metrics.record_timing("analysis_total", duration_ms)
        log.info(
            "Facial analysis completed",
            extra={
                "duration_ms": round(duration_ms, 1),
                "detected_features": profile.detected_features,
                "overall_confidence": profile.overall_confidence,
            }
        )
        report(100)
        return profile
    
    async def batch_analyze(self, images: Sequence[ImageInput],
                            options: Optional[AnalysisOptions] = None) -> List[Optional[FacialColorProfile]]:
        """
        Analyze images in small groups with a pause between groups.
        
        A failed image yields None in its slot; output order matches input order.
        """
        options = options or AnalysisOptions()
        log = self.logger.bind(batch_id=generate_request_id("batch"))
        item_options = replace(options, progress_callback=None)
        report = self._progress_reporter(options.progress_callback)
        results: List[Optional[FacialColorProfile]] = []
        total = len(images)
        
        for start in range(0, total, self.batch_size):
            group = images[start:start + self.batch_size]
            
            async def analyze_item(offset: int, image: ImageInput) -> Optional[FacialColorProfile]:
                index = start + offset
                report(index / total * 100)
                try:
                    return await self.analyze(image, item_options)
                except Exception as e:
                    self.metrics.increment_failure_count("batch_items_failed")
                    log.warning(
                        f"Failed to analyze image {index}",
                        extra={"error_type": type(e).__name__, "error": str(e)}
                    )
                    return None
            
            results.extend(await asyncio.gather(*(analyze_item(i, img) for i, img in enumerate(group))))
            
            if start + self.batch_size < total and self.batch_pause_ms > 0:
                await asyncio.sleep(self.batch_pause_ms / 1000)
        
        report(100)
        
        failed = sum(1 for r in results if r is None)
        log.info("Batch analysis completed", extra={"total": total, "failed": failed})
        return results
    
    async def quick_colors(self, image_input: ImageInput, count: Optional[int] = None,
                           max_image_pixels: Optional[int] = None) -> List[str]:
        """
        Palette of count colors without face detection.
        
        Raises:
            DecodeFailureError: Unreadable input
            ValueError: count or max_image_pixels out of range
        """
        count = config.QUICK_PALETTE_SIZE if count is None else count
        max_pixels = config.QUICK_MAX_PIXELS if max_image_pixels is None else max_image_pixels
        if not Config.validate_palette_size(count):
            raise ValueError(f"Palette size out of range: {count}")
        if not Config.validate_max_pixels(max_pixels):
            raise ValueError(f"max_image_pixels out of range: {max_pixels}")
        
        def work() -> List[str]:
            with performance_monitor("quick_colors"):
                return quick_color_palette(load_image(image_input, max_pixels), count)
        
        try:
            colors = await self._run_blocking(work)
        except DecodeFailureError:
            self.metrics.increment_failure_count("decode_failures")
            raise
        
        self.logger.info("Quick colors generated", extra={"request_id": generate_request_id("quick"), "count": len(colors)})
        return colors or fallback_recommendations(count)
    
    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.get_stats()
    
    def clear_cache(self) -> None:
        self.cache.clear()
    
    def dispose(self) -> None:
        """Release the worker pool and clear the cache."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        self.clear_cache()
    
    def _run_pipeline(self, raw: bytes, max_pixels: int, report: ProgressCallback) -> FacialColorProfile:
        """decode -> downscale -> analyze; runs on a worker thread when offloaded."""
        with performance_monitor("image_decoding"):
            img = load_image(raw, max_pixels)
        report(40)
        return self.analyzer.analyze(img, progress=report)
    
    async def _run_with_timeout(self, work: Callable[[], FacialColorProfile],
                                timeout_ms: int, log: StructuredLogger) -> FacialColorProfile:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, work)
        try:
            return await asyncio.wait_for(future, timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            # The worker thread cannot be interrupted; its result is discarded
            self.metrics.increment_failure_count("timeouts")
            log.warning("Facial analysis timed out", extra={"timeout_ms": timeout_ms})
            raise AnalysisTimeoutError(f"Analysis timed out after {timeout_ms}ms")
    
    async def _run_blocking(self, func: Callable[[], Any]) -> Any:
        if self._executor is None:
            return func()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func)
    
    def _progress_reporter(self, callback: Optional[ProgressCallback]) -> ProgressCallback:
        """
        Progress callback safe to call from worker threads.
        
        Errors raised by the callback are logged and dropped; they never
        reach the pipeline or change its result.
        """
        if callback is None:
            return lambda progress: None
        
        loop = asyncio.get_running_loop()
        
        def deliver(progress: float):
            try:
                callback(progress)
            except Exception as e:
                self.logger.warning(
                    "Progress callback failed",
                    extra={"progress": progress, "error_type": type(e).__name__, "error": str(e)}
                )
        
        def report(progress: float):
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                deliver(progress)
            else:
                loop.call_soon_threadsafe(deliver, progress)
        
        return report
