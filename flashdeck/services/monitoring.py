"""
Health checks and monitoring with Prometheus metrics
"""
import time

import psutil
import structlog
from fastapi.responses import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from flashdeck import config
from flashdeck.db import engine
from flashdeck.services.cache import cache

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
DOCUMENTS_PROCESSED = Counter('documents_processed_total', 'Uploaded documents by kind and outcome', ['kind', 'status'])
CARDS_GENERATED = Counter('flashcards_generated_total', 'Flashcards produced', ['source'])
AI_GENERATION_REQUESTS = Counter('ai_generation_requests_total', 'Total AI generation requests', ['type', 'status'])


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_database(self) -> dict:
        """Check database connectivity"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "message": "Database connection successful"
            }
        except SQLAlchemyError as e:
            logger.error("database_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "message": f"Database connection failed: {str(e)}"
            }

    def check_cache(self) -> dict:
        """Check cache round trip"""
        test_key = "health_check_test"
        cache.set(test_key, "test_value", expire=10)
        value = cache.get(test_key)
        cache.delete(test_key)

        if value == "test_value":
            return {
                "status": "healthy",
                "message": "Cache operations successful",
                "backend": cache.backend
            }
        return {
            "status": "unhealthy",
            "message": "Cache operations failed",
            "backend": cache.backend
        }

    def check_ai(self) -> dict:
        """AI generation is optional; a missing key only degrades the service"""
        if config.OPENAI_API_KEY:
            return {"status": "healthy", "message": "OpenAI key configured", "model": config.OPENAI_MODEL}
        return {"status": "degraded", "message": "OPENAI_API_KEY not set; AI endpoints disabled"}

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')

        return {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": memory.percent,
            "memory_available_gb": round(memory.available / (1024**3), 2),
            "disk_percent": disk.percent,
            "disk_free_gb": round(disk.free / (1024**3), 2),
            "uptime_seconds": time.time() - self.start_time
        }

    def get_health_status(self) -> dict:
        """Get overall health status"""
        checks = {
            "database": self.check_database(),
            "cache": self.check_cache(),
            "ai": self.check_ai()
        }

        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        overall_status = "healthy" if not unhealthy_checks else "unhealthy"

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "unhealthy_components": unhealthy_checks
        }


# Global health checker instance
health_checker = HealthChecker()


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
