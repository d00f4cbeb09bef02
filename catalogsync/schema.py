from typing import Any, Dict, List

from .normalize import is_series

REQUIRED_STR_FIELDS = ["imdbId", "titleType"]
OPTIONAL_STR_FIELDS = ["primaryTitle", "originalTitle"]
OPTIONAL_INT_FIELDS = ["startYear", "endYear", "runtimeMinutes"]
EPISODE_FIELDS = ["imdbId", "episodeNumber", "primaryTitle", "originalTitle", "runtimeMinutes"]


class InvalidDocumentError(ValueError):
    """Raised when a normalized document breaks a document invariant."""

    def __init__(self, imdb_id: Any, errors: List[str]):
        super().__init__(f"Invalid document for {imdb_id}: {'; '.join(errors)}")
        self.imdb_id = imdb_id
        self.errors = errors


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_optional_int(v: Any) -> bool:
    return v is None or (isinstance(v, int) and not isinstance(v, bool))


def validate_document(doc: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []

    for f in REQUIRED_STR_FIELDS:
        if f not in doc:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(doc[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in OPTIONAL_STR_FIELDS:
        if doc.get(f) is not None and not isinstance(doc[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    for f in OPTIONAL_INT_FIELDS:
        if not _is_optional_int(doc.get(f)):
            errors.append(f"Field '{f}' must be an integer or null")

    if not isinstance(doc.get("isAdult"), bool):
        errors.append("Field 'isAdult' must be a boolean")

    genres = doc.get("genres")
    if not isinstance(genres, list) or not all(isinstance(g, str) for g in genres):
        errors.append("Field 'genres' must be a list of strings")

    ratings = doc.get("ratings")
    if not isinstance(ratings, list):
        errors.append("Field 'ratings' must be a list")
    else:
        sources = [r.get("source") for r in ratings if isinstance(r, dict)]
        if len(sources) != len(ratings):
            errors.append("Every rating must be an object")
        elif len(set(sources)) != len(sources):
            errors.append("At most one rating per source is allowed")

    if is_series(doc.get("titleType")):
        seasons = doc.get("seasons")
        if not isinstance(seasons, dict):
            errors.append("Series documents must have a 'seasons' mapping")
        else:
            for season, episodes in seasons.items():
                if not isinstance(episodes, list):
                    errors.append(f"Season '{season}' must be a list of episodes")
                    continue
                for episode in episodes:
                    missing = [f for f in EPISODE_FIELDS if f not in episode]
                    if missing:
                        errors.append(f"Episode in season '{season}' missing: {', '.join(missing)}")
    elif "seasons" in doc:
        errors.append("Field 'seasons' is only allowed on series titles")

    return errors
