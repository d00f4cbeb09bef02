"""
Title discovery.

Scans title_basics for eligible titles and schedules one normalize-title
job per title. Deduplication across runs is left to the job queue.
"""

from typing import Optional

from .config import DISCOVERY_PAGE_SIZE, ELIGIBLE_TITLE_TYPES, NORMALIZE_TITLE_JOB_NAME
from .job_queue import Job, RedisJobQueue, dedup_key_for
from .logger import StructuredLogger, get_logger
from .source_store import SourceStore


def normalize_title_job(imdb_id: str) -> Job:
    return Job(
        name=NORMALIZE_TITLE_JOB_NAME,
        payload={"imdbId": imdb_id},
        dedup_key=dedup_key_for(NORMALIZE_TITLE_JOB_NAME, imdb_id),
    )


class TitleDiscovery:
    """Producer side of the pipeline."""

    def __init__(
        self,
        source: SourceStore,
        queue: RedisJobQueue,
        logger: Optional[StructuredLogger] = None,
        page_size: int = DISCOVERY_PAGE_SIZE,
    ):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.source = source
        self.queue = queue
        self.logger = logger or get_logger()
        self.page_size = page_size

    def run(self) -> int:
        """
        Submit one job per eligible title, a batch per page.

        Pages are read by id descending with a keyset cursor, so rows
        inserted or deleted mid-scan never shift later pages.

        Returns:
            Number of titles scheduled in this run
        """
        self.logger.info("Finding titles to normalize", page_size=self.page_size)
        count = 0
        cursor = None
        while True:
            ids = self.source.list_title_ids(ELIGIBLE_TITLE_TYPES, self.page_size, before=cursor)
            if not ids:
                break
            enqueued = self.queue.submit_batch([normalize_title_job(i) for i in ids])
            self.logger.record_page(len(ids), enqueued)
            self.logger.debug(
                "Page submitted",
                first=ids[0],
                last=ids[-1],
                titles=len(ids),
                enqueued=enqueued,
            )
            count += len(ids)
            cursor = ids[-1]
        self.logger.info(f"{count} titles found to normalize", titles=count)
        return count
