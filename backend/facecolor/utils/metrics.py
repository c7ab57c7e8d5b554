"""
Facial Color Metrics Collection
In-process metrics collection for monitoring and performance tracking.
"""
import time
from collections import defaultdict, Counter
from contextlib import contextmanager
from typing import Dict, List, Optional
from threading import Lock

import psutil
from loguru import logger


class MetricsCollector:
    """Simple in-process metrics collector."""
    
    def __init__(self):
        """Initialize metrics collector."""
        self._lock = Lock()
        self._counters: Dict[str, int] = Counter()
        self._timings: Dict[str, List[float]] = defaultdict(list)
        self._confidences: List[float] = []
        self._start_time = time.time()
    
    def increment_analysis_count(self):
        """Increment total analysis counter."""
        with self._lock:
            self._counters["analyses_total"] += 1
    
    def increment_cache_hit(self):
        with self._lock:
            self._counters["cache_hits_total"] += 1
    
    def increment_cache_miss(self):
        with self._lock:
            self._counters["cache_misses_total"] += 1
    
    def increment_fallback_count(self, reason: str):
        """Increment fallback profile counter by reason."""
        with self._lock:
            self._counters["fallback_total"] += 1
            self._counters[f"fallback_total_{reason}"] += 1
    
    def increment_insufficient_samples(self, feature: str):
        with self._lock:
            self._counters[f"insufficient_samples_total_{feature}"] += 1
    
    def increment_failure_count(self, error_type: str):
        """Increment failure counter by error type."""
        with self._lock:
            self._counters[f"{error_type}_total"] += 1
    
    def record_timing(self, operation: str, duration_ms: float):
        """Record timing for an operation."""
        with self._lock:
            self._timings[f"{operation}_duration_ms"].append(duration_ms)
    
    def record_confidence(self, confidence: float):
        """Record overall profile confidence."""
        with self._lock:
            self._confidences.append(confidence)
    
    def get_counters(self) -> Dict[str, int]:
        """Get current counter values."""
        with self._lock:
            return dict(self._counters)
    
    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        """Get timing statistics."""
        with self._lock:
            stats = {}
            for operation, timings in self._timings.items():
                if timings:
                    stats[operation] = {
                        "count": len(timings),
                        "mean": sum(timings) / len(timings),
                        "min": min(timings),
                        "max": max(timings),
                        "p50": self._percentile(timings, 50),
                        "p95": self._percentile(timings, 95)
                    }
            return stats
    
    def get_confidence_stats(self) -> Dict[str, float]:
        """Get overall confidence statistics."""
        with self._lock:
            if not self._confidences:
                return {}
            
            return {
                "count": len(self._confidences),
                "mean": sum(self._confidences) / len(self._confidences),
                "min": min(self._confidences),
                "max": max(self._confidences),
                "p50": self._percentile(self._confidences, 50)
            }
    
    def get_uptime_seconds(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time
    
    def get_all_metrics(self) -> Dict:
        """Get all metrics in a single dictionary."""
        return {
            "counters": self.get_counters(),
            "timings": self.get_timing_stats(),
            "confidence": self.get_confidence_stats(),
            "uptime_seconds": self.get_uptime_seconds()
        }
    
    def reset(self):
        """Reset all metrics."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()
            self._confidences.clear()
            self._start_time = time.time()
    
    @staticmethod
    def _percentile(data: List[float], percentile: float) -> float:
        """Calculate percentile of data."""
        if not data:
            return 0.0
        
        sorted_data = sorted(data)
        index = (percentile / 100) * (len(sorted_data) - 1)
        
        if index.is_integer():
            return sorted_data[int(index)]
        else:
            lower = sorted_data[int(index)]
            upper = sorted_data[int(index) + 1]
            return lower + (upper - lower) * (index - int(index))


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics():
    """Reset global metrics (for testing)."""
    get_metrics_collector().reset()


@contextmanager
def performance_monitor(operation_name: str, **context):
    """Context manager timing a pipeline stage into the metrics collector."""
    start_time = time.time()
    start_memory = psutil.Process().memory_info().rss / 1024 / 1024  # MB
    error_msg = None
    
    try:
        yield
    except Exception as e:
        error_msg = str(e)
        raise
    finally:
        duration_ms = (time.time() - start_time) * 1000
        end_memory = psutil.Process().memory_info().rss / 1024 / 1024  # MB
        get_metrics_collector().record_timing(operation_name, duration_ms)
        
        if error_msg:
            logger.bind(**context).warning(
                f"Stage {operation_name} failed after {duration_ms:.1f}ms: {error_msg}"
            )
        else:
            logger.bind(**context).debug(
                f"Stage {operation_name} completed in {duration_ms:.1f}ms "
                f"(memory: {max(start_memory, end_memory):.1f}MB)"
            )
