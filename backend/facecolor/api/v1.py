"""
Facial Color API Routes
Implements /v1/face-colors endpoints over the performance-optimized pipeline.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from loguru import logger

from facecolor.config import Config
from facecolor.errors import AnalysisTimeoutError, DecodeFailureError
from facecolor.schemas import (
    BatchAnalyzeResponse,
    CacheStatsResponse,
    FacialColorProfile,
    QuickColorsResponse,
)
from facecolor.services.analysis import FacialColorAnalyzer
from facecolor.services.detection import DetectorService, FaceRecognitionDetector
from facecolor.services.performance import AnalysisOptions, PerformanceOptimizedFacialAnalysis
from facecolor.utils.metrics import get_metrics_collector

config = Config()
router = APIRouter(prefix="/v1/face-colors", tags=["Facial Color Analysis"])

_service: Optional[PerformanceOptimizedFacialAnalysis] = None


def get_facial_analysis() -> PerformanceOptimizedFacialAnalysis:
    """Process-wide analysis service, built on first use."""
    global _service
    if _service is None:
        if not config.validate_detector_model(config.DETECTOR_MODEL):
            raise ValueError(f"Unsupported FACECOLOR_DETECTOR_MODEL: {config.DETECTOR_MODEL!r}")
        detector_service = DetectorService(FaceRecognitionDetector(model=config.DETECTOR_MODEL))
        _service = PerformanceOptimizedFacialAnalysis(FacialColorAnalyzer(detector_service))
    return _service


async def read_upload(file: UploadFile) -> bytes:
    """Read an upload, enforcing the configured size limit."""
    if file.content_type and file.content_type not in config.SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported media type. Supported: {', '.join(config.SUPPORTED_MIME_TYPES)}"
        )
    
    data = await file.read()
    if len(data) > config.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(status_code=400, detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB")
    return data


@router.post("/analyze",
             response_model=FacialColorProfile,
             summary="Facial Color Analysis",
             description="Detect skin tone, hair color and eye color from a portrait")
async def analyze_face_colors(
    file: UploadFile = File(..., description="Portrait image"),
    max_pixels: int = Query(config.MAX_IMAGE_PIXELS, description="Pixel ceiling for downscaling before detection"),
    timeout_ms: int = Query(config.TIMEOUT_MS, description="Analysis time budget in milliseconds"),
    cache_ok: bool = Query(True, description="Allow cache usage"),
    service: PerformanceOptimizedFacialAnalysis = Depends(get_facial_analysis),
):
    if not config.validate_max_pixels(max_pixels):
        raise HTTPException(status_code=422, detail=f"max_pixels out of range: {max_pixels}")
    if not config.validate_timeout_ms(timeout_ms):
        raise HTTPException(status_code=422, detail=f"timeout_ms out of range: {timeout_ms}")
    
    data = await read_upload(file)
    options = AnalysisOptions(
        max_image_pixels=max_pixels,
        timeout_ms=timeout_ms,
        enable_caching=cache_ok and config.ENABLE_CACHING,
    )
    
    try:
        return await service.analyze(data, options)
    except DecodeFailureError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AnalysisTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))


@router.post("/batch",
             response_model=BatchAnalyzeResponse,
             summary="Batch Facial Color Analysis")
async def batch_analyze_face_colors(
    files: List[UploadFile] = File(..., description="Portrait images"),
    service: PerformanceOptimizedFacialAnalysis = Depends(get_facial_analysis),
):
    # Rejected uploads keep their slot as None; the rest are analyzed
    uploads: List[Optional[bytes]] = []
    for index, upload in enumerate(files):
        try:
            uploads.append(await read_upload(upload))
        except HTTPException as e:
            logger.warning(f"Batch upload {index} rejected: {e.detail}")
            uploads.append(None)
    
    accepted = [data for data in uploads if data is not None]
    analyzed = iter(await service.batch_analyze(accepted))
    profiles = [next(analyzed) if data is not None else None for data in uploads]
    return BatchAnalyzeResponse(
        profiles=profiles,
        failed_indices=[i for i, p in enumerate(profiles) if p is None],
    )


@router.post("/quick",
             response_model=QuickColorsResponse,
             summary="Quick Color Recommendations",
             description="Fast, lower-accuracy palette without face detection")
async def quick_face_colors(
    file: UploadFile = File(..., description="Portrait image"),
    count: int = Query(config.QUICK_PALETTE_SIZE, description="Palette size"),
    service: PerformanceOptimizedFacialAnalysis = Depends(get_facial_analysis),
):
    if not config.validate_palette_size(count):
        raise HTTPException(status_code=422, detail=f"count out of range: {count}")
    
    data = await read_upload(file)
    try:
        colors = await service.quick_colors(data, count=count)
    except DecodeFailureError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return QuickColorsResponse(colors=colors, count=len(colors))


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(service: PerformanceOptimizedFacialAnalysis = Depends(get_facial_analysis)):
    return CacheStatsResponse(**service.get_cache_stats())


@router.delete("/cache")
async def clear_cache(service: PerformanceOptimizedFacialAnalysis = Depends(get_facial_analysis)):
    service.clear_cache()
    return {"cleared": True}


@router.get("/metrics")
async def metrics():
    """In-process counters, stage timings and confidence stats."""
    return get_metrics_collector().get_all_metrics()
