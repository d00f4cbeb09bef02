"""
Redis-backed job submission with per-key deduplication.

Pending jobs of a given name live in the list ``queue:<name>``. Each pending
job also holds the marker ``dedup:<dedup_key>``; while the marker exists,
further submissions with the same key are dropped.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from redis import Redis
from redis.exceptions import RedisError


class JobSubmissionError(Exception):
    """Raised when the queue fails to accept a batch."""
    pass


@dataclass(frozen=True)
class Job:
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    dedup_key: str = ""

    def to_json(self) -> str:
        return json.dumps(
            {"name": self.name, "payload": self.payload, "dedup_key": self.dedup_key},
            sort_keys=True,
        )

    @classmethod
    def from_json(cls, raw: str) -> "Job":
        data = json.loads(raw)
        return cls(name=data["name"], payload=data["payload"], dedup_key=data["dedup_key"])


def dedup_key_for(job_name: str, entity_id: str) -> str:
    """Deterministic deduplication key, e.g. ``normalize-title:tt0000001``."""
    return f"{job_name}:{entity_id}"


class RedisJobQueue:
    """Job queue over a Redis client created with decode_responses=True."""

    def __init__(self, redis: Redis, prefix: str = "catalogsync"):
        self.redis = redis
        self.prefix = prefix

    def _queue_key(self, name: str) -> str:
        return f"{self.prefix}:queue:{name}"

    def _dedup_key(self, dedup_key: str) -> str:
        return f"{self.prefix}:dedup:{dedup_key}"

    def submit_batch(self, jobs: Iterable[Job]) -> int:
        """
        Enqueue jobs whose deduplication key is not already pending.

        The page is sent as two pipelined transactions: one claiming the
        deduplication markers, one pushing the accepted jobs. If Redis fails
        in between, the markers claimed by this call are released again.

        Args:
            jobs: Jobs to submit; each is deduplicated independently

        Returns:
            Number of jobs actually enqueued

        Raises:
            JobSubmissionError: If Redis fails while accepting the batch
        """
        jobs = list(jobs)
        claimed: List[str] = []
        try:
            accepted = self._claim(jobs, claimed)
            if accepted:
                payloads: Dict[str, List[str]] = {}
                for job in accepted:
                    payloads.setdefault(self._queue_key(job.name), []).append(job.to_json())
                pipe = self.redis.pipeline(transaction=True)
                for queue_key, values in payloads.items():
                    pipe.rpush(queue_key, *values)
                pipe.execute()
        except RedisError as e:
            self._release(claimed, e)
            raise JobSubmissionError(f"Batch submission failed: {e}") from e
        return len(accepted)

    def _claim(self, jobs: List[Job], claimed: List[str]) -> List[Job]:
        """Set the markers of keyed jobs; return the jobs that won theirs."""
        keyed = [job for job in jobs if job.dedup_key]
        results = []
        if keyed:
            pipe = self.redis.pipeline(transaction=True)
            for job in keyed:
                pipe.set(self._dedup_key(job.dedup_key), job.name, nx=True)
            results = pipe.execute()
        won = iter(results)
        accepted = []
        for job in jobs:
            if job.dedup_key:
                if not next(won):
                    continue
                claimed.append(self._dedup_key(job.dedup_key))
            accepted.append(job)
        return accepted

    def _release(self, markers: List[str], cause: RedisError) -> None:
        if not markers:
            return
        try:
            self.redis.delete(*markers)
        except RedisError as e:
            raise JobSubmissionError(
                f"Batch submission failed: {cause}; "
                f"{len(markers)} deduplication markers could not be released: {e}"
            ) from cause

    def pop(self, name: str) -> Optional[Job]:
        """Take the next pending job and release its deduplication key."""
        raw = self.redis.lpop(self._queue_key(name))
        if raw is None:
            return None
        job = Job.from_json(raw)
        if job.dedup_key:
            self.redis.delete(self._dedup_key(job.dedup_key))
        return job

    def pending(self, name: str) -> int:
        return self.redis.llen(self._queue_key(name))


def connect(host: str, port: int, password: Optional[str] = None) -> Redis:
    return Redis(
        host=host,
        port=port,
        password=password,
        decode_responses=True,
        socket_timeout=10.0,
        socket_connect_timeout=5.0,
    )
