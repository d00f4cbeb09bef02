"""
Title normalization.

Joins one title with its rating and (for series) its episodes, and writes
the resulting document to the titles collection.
"""

from typing import Any, Dict, Optional

from .config import TITLES_COLLECTION
from .document_store import DocumentStore
from .job_queue import Job
from .logger import StructuredLogger, get_logger
from .normalize import is_series, normalize_title
from .schema import InvalidDocumentError, validate_document
from .source_store import SourceStore, TitleNotFoundError


class TitleNormalization:
    """Consumer side of the pipeline."""

    def __init__(
        self,
        source: SourceStore,
        documents: DocumentStore,
        logger: Optional[StructuredLogger] = None,
        collection: str = TITLES_COLLECTION,
    ):
        self.source = source
        self.documents = documents
        self.logger = logger or get_logger()
        self.collection = collection

    def build(self, imdb_id: str) -> Dict[str, Any]:
        """
        Read the source rows of a title and assemble its document.

        Raises:
            ValueError: If imdb_id is empty
            TitleNotFoundError: If the title has no title_basics row
            InvalidDocumentError: If the assembled document is malformed
        """
        if not imdb_id or not imdb_id.strip():
            raise ValueError("imdb_id must be a non-empty string")

        title = self.source.get_title(imdb_id)
        if title is None:
            raise TitleNotFoundError(imdb_id)
        self.logger.debug(
            f"{imdb_id} title name: {title['primarytitle']} - {title['startyear']}"
        )

        ratings = self.source.get_ratings(imdb_id, limit=1)
        episodes = None
        if is_series(title["titletype"]):
            episodes = self.source.get_episodes(imdb_id)

        document = normalize_title(title, ratings, episodes)
        if "seasons" in document:
            self.logger.debug(f"{imdb_id} title seasons: {len(document['seasons'])}")

        errors = validate_document(document)
        if errors:
            raise InvalidDocumentError(imdb_id, errors)
        return document

    def run(self, imdb_id: str) -> None:
        """Normalize one title and upsert it. Errors propagate to the caller."""
        self.logger.record_normalization_attempt()
        self.logger.debug(f"{imdb_id} title normalization started")
        try:
            document = self.build(imdb_id)
            result = self.documents.upsert(self.collection, document["imdbId"], document)
        except Exception as e:
            self.logger.record_normalization_failure(type(e).__name__)
            self.logger.error(f"{imdb_id} title normalization failed: {e}", imdb_id=imdb_id)
            raise
        self.logger.record_normalization_success(result["status"])
        self.logger.info(
            f"{imdb_id} title normalization completed",
            status=result["status"],
            changed=result["changed"],
        )

    def handle(self, job: Job) -> None:
        """Entry point for a normalize-title job."""
        self.run(job.payload["imdbId"])
