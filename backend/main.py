from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before config is read
load_dotenv()

from facecolor import __version__
from facecolor.api.v1 import get_facial_analysis, router as v1_router
from facecolor.schemas import HealthResponse
from facecolor.services.performance import PerformanceOptimizedFacialAnalysis
from facecolor.utils.logging import get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_logger().info("Starting facial color service", extra={"version": __version__})
    service = get_facial_analysis()
    await service.initialize()
    yield
    service.dispose()


app = FastAPI(
    title="What2Wear Facial Color Analysis",
    description="Skin tone, hair color and eye color analysis for outfit recommendations",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001", "http://localhost:3002"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(v1_router)


@app.get("/healthz", response_model=HealthResponse)
def health_check(service: PerformanceOptimizedFacialAnalysis = Depends(get_facial_analysis)):
    """Health check endpoint"""
    return HealthResponse(
        ok=True,
        version=__version__,
        detector_ready=service.analyzer.detector_service.initialized,
    )


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "What2Wear Facial Color Analysis API",
        "version": __version__,
        "docs": "/docs"
    }
