"""
Generation job tracker for SlideReel (jobs).

Submits work to external video providers and follows each job to a terminal
state. Every job is polled by its own asyncio task, so a slow provider only
delays its own jobs. State changes happen in exactly one place,
``apply_report``, and always go through the transition table.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from slidereel.configs.config import Config, config
from slidereel.errors import JobFailed, JobTimeout, VideoProviderError
from slidereel.jobs.models import GenerationJob, Transition
from slidereel.jobs.state_machine import apply_transition, path_to
from slidereel.jobs.store import InMemoryJobStore, JobStore
from slidereel.repository.interfaces import ObjectStore
from slidereel.video.interface import VideoProvider
from slidereel.video.models import JobKind, JobState, JobStatusReport, VideoProviderType
from slidereel.video.registry import ProviderRegistry

UNPUBLISHED_WARNING = "generated but not published"

Listener = Callable[[GenerationJob, Transition], Awaitable[None] | None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def timeout_message(seconds: float) -> str:
    return f"Generation timeout after {seconds:g} seconds"


class GenerationJobTracker:
    """Tracks externally hosted generation jobs through their lifecycle"""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: JobStore | None = None,
        publisher: ObjectStore | None = None,
        settings: Config | None = None,
        poll_interval: float | Mapping[JobKind, float] | None = None,
        initial_delay: float | None = None,
        poll_timeout: float | None = None,
        timeouts: Mapping[JobKind, float] | None = None,
        clock: Callable[[], datetime] = _utcnow,
        max_finished: int = 1000,
    ) -> None:
        settings = settings or config
        self.registry = registry
        self.store = store or InMemoryJobStore()
        self.publisher = publisher
        self.clock = clock

        if poll_interval is None:
            poll_interval = settings.job_poll_interval
        if isinstance(poll_interval, Mapping):
            self.poll_intervals = {
                kind: poll_interval.get(kind, settings.job_poll_interval)
                for kind in JobKind
            }
        else:
            self.poll_intervals = {kind: float(poll_interval) for kind in JobKind}

        self.initial_delay = (
            settings.job_initial_delay if initial_delay is None else initial_delay
        )
        self.poll_timeout = (
            settings.job_poll_timeout if poll_timeout is None else poll_timeout
        )
        self.timeouts = {
            kind: settings.job_timeout_for(kind.value) for kind in JobKind
        }
        if timeouts:
            self.timeouts.update(timeouts)

        self._jobs: dict[str, GenerationJob] = {}
        self._providers: dict[str, VideoProvider] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._listeners: list[Listener] = []
        # Terminal jobs kept in memory, oldest first; older ones live in the store
        self.max_finished = max_finished
        self._finished: deque[str] = deque()

    def add_listener(self, listener: Listener) -> None:
        """Register a callback invoked once per actual state transition."""
        self._listeners.append(listener)

    def get(self, job_id: str) -> GenerationJob:
        return self._job(job_id).model_copy(deep=True)

    def _job(self, job_id: str) -> GenerationJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise KeyError(f"Unknown job: {job_id}")
        return job

    async def fetch(self, job_id: str) -> GenerationJob:
        """Return a job from memory, falling back to the job store."""
        if job_id in self._jobs:
            return self.get(job_id)
        job = await self.store.get(job_id)
        if job is None:
            raise KeyError(f"Unknown job: {job_id}")
        return job

    async def submit(
        self,
        provider: VideoProviderType | VideoProvider | None,
        kind: JobKind,
        params: dict[str, Any],
        subject_id: str | None = None,
        poll: bool = True,
    ) -> GenerationJob:
        """Start a job with the provider and begin polling it."""
        if not isinstance(provider, VideoProvider):
            provider = self.registry.get(provider)

        job_id = await provider.submit(params)
        job = GenerationJob(
            job_id=job_id,
            provider_type=provider.provider_type,
            kind=kind,
            subject_id=subject_id,
            created_at=self.clock(),
            params=params,
        )
        self._jobs[job_id] = job
        self._providers[job_id] = provider
        self._locks[job_id] = asyncio.Lock()
        await self.store.save(job)
        logger.info(
            f"Submitted {kind.value} job {job_id} to {provider.provider_name}"
            + (f" for {subject_id}" if subject_id else "")
        )

        if poll:
            self._tasks[job_id] = asyncio.create_task(
                self._poll_loop(job_id), name=f"poll-{job_id}"
            )
        return job.model_copy(deep=True)

    async def apply_report(
        self, job_id: str, report: JobStatusReport
    ) -> list[Transition]:
        """Fold one provider status report into the job; returns the transitions."""
        job = self._job(job_id)
        async with self._locks[job_id]:
            if job.is_terminal:
                logger.debug(f"Ignoring report for terminal job {job_id}")
                return []

            if report.progress is not None:
                job.progress = report.progress
            if report.duration is not None:
                job.duration = report.duration

            target = report.state
            if target == job.state:
                return []

            path = path_to(job.state, target)
            if not path:
                logger.warning(
                    f"Job {job_id} reported {target.value} while "
                    f"{job.state.value}, ignoring"
                )
                return []

            if target is JobState.COMPLETED:
                self._record_result(job, report.result_url)
            elif target is JobState.FAILED:
                job.error_message = report.error_message or "Generation failed"

            transitions = [apply_transition(job, state, self.clock()) for state in path]

        if target is JobState.COMPLETED and job.result_url:
            await self._publish_result(job)
        await self._after_transitions(job, transitions)
        return transitions

    def _record_result(self, job: GenerationJob, result_url: str | None) -> None:
        job.progress = 100
        if not result_url:
            job.warning = UNPUBLISHED_WARNING
            logger.warning(f"Job {job.job_id} completed without a result URL")
            return
        job.result_url = result_url

    async def _publish_result(self, job: GenerationJob) -> None:
        # Runs outside the job lock; the job is already terminal here
        if self.publisher is None or job.result_url is None:
            return
        key = f"{job.kind.value}/{job.subject_id or job.job_id}.mp4"
        try:
            job.published_url = await self.publisher.publish(job.result_url, key)
        except Exception as e:
            logger.error(f"Failed to publish result of job {job.job_id}: {e}")
            job.warning = UNPUBLISHED_WARNING

    async def _after_transitions(
        self, job: GenerationJob, transitions: list[Transition]
    ) -> None:
        if not transitions:
            return
        await self.store.save(job)
        for transition in transitions:
            logger.info(
                f"Job {job.job_id}: {transition.from_state.value} -> "
                f"{transition.to_state.value}"
            )
            for listener in self._listeners:
                try:
                    result = listener(job, transition)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.error(f"Job listener failed for {job.job_id}: {e}")

        if job.is_terminal:
            self._retire(job.job_id)

    def _retire(self, job_id: str) -> None:
        self._finished.append(job_id)
        while len(self._finished) > self.max_finished:
            evicted = self._finished.popleft()
            for entries in (self._jobs, self._providers, self._tasks, self._locks):
                entries.pop(evicted, None)
            logger.debug(f"Evicted finished job {evicted} from tracker memory")

    async def poll_once(self, job_id: str) -> list[Transition]:
        provider = self._providers[job_id]
        report = await asyncio.wait_for(
            provider.get_status(job_id), timeout=self.poll_timeout
        )
        return await self.apply_report(job_id, report)

    async def _poll_loop(self, job_id: str) -> None:
        job = self._job(job_id)
        loop = asyncio.get_running_loop()
        limit = self.timeouts[job.kind]
        interval = self.poll_intervals[job.kind]
        deadline = loop.time() + limit

        if self.initial_delay > 0:
            await asyncio.sleep(min(self.initial_delay, limit))

        while not job.is_terminal:
            if loop.time() >= deadline:
                await self._expire(job_id, limit)
                return
            try:
                await self.poll_once(job_id)
            except TimeoutError:
                logger.warning(
                    f"Status poll for job {job_id} timed out after "
                    f"{self.poll_timeout:g}s, retrying"
                )
            except VideoProviderError as e:
                logger.warning(f"Status poll for job {job_id} failed: {e}, retrying")
            except Exception as e:
                logger.error(
                    f"Unexpected error polling job {job_id}: {e!r}, retrying"
                )

            if job.is_terminal:
                return
            remaining = deadline - loop.time()
            await asyncio.sleep(max(0.0, min(interval, remaining)))

    async def _expire(self, job_id: str, limit: float) -> None:
        job = self._job(job_id)
        message = timeout_message(limit)
        logger.error(f"Job {job_id}: {message}")
        async with self._locks[job_id]:
            if job.is_terminal:
                return
            job.timed_out = True
            job.error_message = message
            transition = apply_transition(job, JobState.FAILED, self.clock())
        await self._after_transitions(job, [transition])

    async def cancel(self, job_id: str) -> GenerationJob:
        """Record cancellation, stop polling and ask the provider to stop."""
        job = self._job(job_id)
        async with self._locks[job_id]:
            if job.is_terminal:
                logger.debug(f"Job {job_id} already {job.state.value}, not cancelling")
                return job.model_copy(deep=True)
            transition = apply_transition(job, JobState.CANCELLED, self.clock())

        task = self._tasks.get(job_id)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

        provider = self._providers[job_id]
        try:
            if not await provider.cancel(job_id):
                logger.info(f"{provider.provider_name} did not cancel job {job_id}")
        except VideoProviderError as e:
            logger.warning(f"Provider cancel failed for job {job_id}: {e}")

        await self._after_transitions(job, [transition])
        return job.model_copy(deep=True)

    async def wait(self, job_id: str, timeout: float | None = None) -> GenerationJob:
        """Wait for the job's polling task to finish and return the job."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task}, timeout=timeout)
            if task.done() and not task.cancelled():
                error = task.exception()
                if error is not None:
                    raise error
        return await self.fetch(job_id)

    @staticmethod
    def raise_for_outcome(job: GenerationJob) -> GenerationJob:
        """Raise JobTimeout or JobFailed for a failed job, else return it."""
        if job.state is JobState.FAILED:
            reason = job.error_message or "Generation failed"
            if job.timed_out:
                raise JobTimeout(job.job_id, reason)
            raise JobFailed(job.job_id, reason)
        return job

    def active_jobs(self) -> list[GenerationJob]:
        return [
            job.model_copy(deep=True)
            for job in self._jobs.values()
            if not job.is_terminal
        ]

    async def shutdown(self) -> None:
        """Stop every polling task; jobs keep their current state."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info(f"Job tracker stopped {len(tasks)} polling tasks")
