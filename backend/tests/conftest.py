"""
Test configuration and fixtures for facial color analysis tests.
"""
import pytest
from fastapi.testclient import TestClient

from facecolor.services.analysis import FacialColorAnalyzer
from facecolor.services.cache import ProfileCache
from facecolor.services.detection import DetectorService
from facecolor.services.performance import PerformanceOptimizedFacialAnalysis

from fakes import StubDetector
from generate_test_images import create_portrait, encode_png, portrait_detection


class FakeClock:
    """Manually advanced clock for cache expiry tests."""
    
    def __init__(self, start: float = 1000.0):
        self.now = start
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from facecolor.utils.metrics import reset_metrics
    reset_metrics()


@pytest.fixture
def portrait():
    return create_portrait()


@pytest.fixture
def portrait_png(portrait):
    return encode_png(portrait)


@pytest.fixture
def face_detector():
    """Stub detector reporting the synthetic portrait's face."""
    return StubDetector(detection=portrait_detection())


@pytest.fixture
def analyzer(face_detector):
    return FacialColorAnalyzer(DetectorService(face_detector))


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def facial_analysis(analyzer, fake_clock):
    """Performance layer with one worker, no batch pause and a fake-clock cache."""
    service = PerformanceOptimizedFacialAnalysis(
        analyzer,
        cache=ProfileCache(ttl_seconds=60, max_size=10, clock=fake_clock),
        max_workers=1,
        batch_size=2,
        batch_pause_ms=0,
    )
    yield service
    service.dispose()


@pytest.fixture
def test_client(facial_analysis):
    """Create test client with the stubbed analysis service."""
    from main import app
    from facecolor.api.v1 import get_facial_analysis
    
    app.dependency_overrides[get_facial_analysis] = lambda: facial_analysis
    yield TestClient(app)
    app.dependency_overrides.clear()
