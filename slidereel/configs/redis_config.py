"""
Centralized Redis configuration for SlideReel (configs).
"""

import redis.asyncio as redis

from slidereel.configs.config import config


class RedisConfig:
    @classmethod
    def get_redis_client(cls) -> redis.Redis:
        return redis.Redis(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            password=config.redis_password,
            decode_responses=True,
            socket_timeout=5.0,
        )

