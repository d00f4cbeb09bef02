"""
Read-only access to the relational title catalog.

Rows are returned as plain dicts keyed by source column name so that
nothing downstream holds on to a session.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import sessionmaker

from .database import TitleBasics, TitleEpisode, TitleRating

TITLE_COLUMNS = (
    "tconst",
    "titletype",
    "primarytitle",
    "originaltitle",
    "isadult",
    "startyear",
    "endyear",
    "runtimeminutes",
    "genres",
)


class TitleNotFoundError(LookupError):
    """Raised when a title identifier has no title_basics row."""

    def __init__(self, imdb_id: str):
        super().__init__(f"Title not found: {imdb_id}")
        self.imdb_id = imdb_id


def _title_to_dict(title: TitleBasics) -> Dict[str, Any]:
    return {column: getattr(title, column) for column in TITLE_COLUMNS}


class SourceStore:
    """Query helpers over title_basics, title_ratings and title_episode."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def list_title_ids(
        self,
        title_types: Iterable[str],
        limit: int,
        before: Optional[str] = None,
    ) -> List[str]:
        """
        Return one page of title ids, ordered by id descending.

        Args:
            title_types: Title types to include
            limit: Maximum number of ids in the page
            before: Keyset cursor; only ids strictly lower than this are returned

        Returns:
            List of tconst values (empty when the scan is exhausted)
        """
        with self.session_factory() as session:
            query = session.query(TitleBasics.tconst).filter(
                TitleBasics.titletype.in_(list(title_types))
            )
            if before is not None:
                query = query.filter(TitleBasics.tconst < before)
            rows = query.order_by(TitleBasics.tconst.desc()).limit(limit).all()
        return [row.tconst for row in rows]

    def get_title(self, imdb_id: str) -> Optional[Dict[str, Any]]:
        with self.session_factory() as session:
            title = session.query(TitleBasics).filter_by(tconst=imdb_id).first()
            if title is None:
                return None
            return _title_to_dict(title)

    def get_ratings(self, imdb_id: str, limit: int = 1) -> List[Dict[str, Any]]:
        """Return complete ratings (average and votes both set) for a title."""
        with self.session_factory() as session:
            rows = (
                session.query(TitleRating)
                .filter(
                    TitleRating.tconst == imdb_id,
                    TitleRating.averagerating.isnot(None),
                    TitleRating.numvotes.isnot(None),
                )
                .limit(limit)
                .all()
            )
            return [
                {"averagerating": row.averagerating, "numvotes": row.numvotes}
                for row in rows
            ]

    def get_episodes(self, parent_id: str) -> List[Dict[str, Any]]:
        """
        Return the episodes of a series joined with their own title rows.

        Rows come back in the store's natural order; callers sort.
        """
        with self.session_factory() as session:
            rows = (
                session.query(TitleEpisode, TitleBasics)
                .join(TitleBasics, TitleEpisode.tconst == TitleBasics.tconst)
                .filter(TitleEpisode.parenttconst == parent_id)
                .all()
            )
            return [
                {
                    "tconst": episode.tconst,
                    "seasonnumber": episode.seasonnumber,
                    "episodenumber": episode.episodenumber,
                    "primarytitle": title.primarytitle,
                    "originaltitle": title.originaltitle,
                    "runtimeminutes": title.runtimeminutes,
                }
                for episode, title in rows
            ]
