"""
Generation job persistence for SlideReel (jobs).

Jobs are stored as JSON documents; a per-subject pointer remembers the most
recent job of each kind so preflight checks can find the latest avatar or intro
video without scanning.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from slidereel.configs.config import Config, config
from slidereel.jobs.models import GenerationJob
from slidereel.video.models import JobKind

# Redis TTL for persisted jobs (7 days)
JOB_TTL_SECONDS = 7 * 24 * 3600


class JobStore(ABC):
    """Persistence collaborator for generation jobs"""

    @abstractmethod
    async def save(self, job: GenerationJob) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get(self, job_id: str) -> GenerationJob | None:
        raise NotImplementedError

    @abstractmethod
    async def find_latest(
        self, subject_id: str, kind: JobKind
    ) -> GenerationJob | None:
        raise NotImplementedError


class InMemoryJobStore(JobStore):
    def __init__(self) -> None:
        self._jobs: dict[str, GenerationJob] = {}
        self._latest: dict[tuple[str, JobKind], str] = {}
        self._lock = asyncio.Lock()

    async def save(self, job: GenerationJob) -> None:
        async with self._lock:
            self._jobs[job.job_id] = job.model_copy(deep=True)
            if job.subject_id is not None:
                self._latest[(job.subject_id, job.kind)] = job.job_id

    async def get(self, job_id: str) -> GenerationJob | None:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    async def find_latest(
        self, subject_id: str, kind: JobKind
    ) -> GenerationJob | None:
        job_id = self._latest.get((subject_id, kind))
        return await self.get(job_id) if job_id else None


class RedisJobStore(JobStore):
    """Redis-backed job store"""

    def __init__(self, redis_client: Any = None, ttl: int = JOB_TTL_SECONDS) -> None:
        if redis_client is None:
            from slidereel.configs.redis_config import RedisConfig

            redis_client = RedisConfig.get_redis_client()
        self.redis_client = redis_client
        self.ttl = ttl

    def _get_key(self, job_id: str) -> str:
        return f"sr:job:{job_id}"

    def _get_subject_key(self, subject_id: str, kind: JobKind) -> str:
        return f"sr:subject:{subject_id}:{kind.value}"

    async def save(self, job: GenerationJob) -> None:
        await self.redis_client.set(
            self._get_key(job.job_id), job.model_dump_json(), ex=self.ttl
        )
        if job.subject_id is not None:
            await self.redis_client.set(
                self._get_subject_key(job.subject_id, job.kind),
                job.job_id,
                ex=self.ttl,
            )
        logger.debug(f"Persisted job {job.job_id} ({job.state.value})")

    async def get(self, job_id: str) -> GenerationJob | None:
        raw = await self.redis_client.get(self._get_key(job_id))
        if not raw:
            return None
        return GenerationJob.model_validate_json(raw)

    async def find_latest(
        self, subject_id: str, kind: JobKind
    ) -> GenerationJob | None:
        job_id = await self.redis_client.get(self._get_subject_key(subject_id, kind))
        if not job_id:
            return None
        return await self.get(job_id)


def create_job_store(settings: Config | None = None) -> JobStore:
    settings = settings or config
    if settings.job_store == "redis":
        return RedisJobStore()
    if settings.job_store != "memory":
        raise ValueError(f"Unknown job store: {settings.job_store}")
    return InMemoryJobStore()
