import json
import hashlib
from typing import Dict, List, Optional

import redis

from sprintplanr.config.settings import get_settings

settings = get_settings()


class SolutionCache:
    """
    Redis cache of optimization responses.

    Only seeded runs with a fixed reference time are reproducible, so callers
    must only cache those.
    """

    def __init__(self, redis_url: str = settings.redis_url, ttl_seconds: int = settings.cache_ttl_seconds):
        self.redis_client = redis.from_url(redis_url, decode_responses=True)
        self.ttl_seconds = ttl_seconds

    def get(self, request_hash: str) -> Optional[Dict]:
        """Retrieve cached response by request hash."""
        cached = self.redis_client.get(f"solutions:{request_hash}")
        if cached:
            return json.loads(cached)
        return None

    def set(self, request_hash: str, response: Dict) -> None:
        self.redis_client.setex(
            f"solutions:{request_hash}",
            self.ttl_seconds,
            json.dumps(response, default=str)
        )

    @staticmethod
    def hash_request(tasks: List[Dict], resources: List[Dict], config: Dict, reference_time: str) -> str:
        """Generate hash from everything that determines a run's output."""
        data = json.dumps(
            {"tasks": tasks, "resources": resources, "config": config, "reference_time": reference_time},
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(data.encode()).hexdigest()[:16]

    def health_check(self) -> bool:
        """Check Redis connection."""
        try:
            self.redis_client.ping()
            return True
        except redis.RedisError:
            return False
