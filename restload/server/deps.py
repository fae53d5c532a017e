from fastapi import Request

from restload.cache import CacheStore
from restload.paths import cache_dir, service_config_path
from restload.service import ReadinessService


def default_service() -> ReadinessService:
    """Build a ReadinessService from RESTLOAD_SERVICE_CONFIG / RESTLOAD_CACHE_DIR."""
    return ReadinessService(service_config_path(), CacheStore(cache_dir()))


def get_service(request: Request) -> ReadinessService:
    return request.app.state.service
