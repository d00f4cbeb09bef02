from typing import Any, Dict, Iterable, List, Optional

from .config import RATING_SOURCE, SERIES_TITLE_TYPES

UNKNOWN_SEASON = "unknown"


def is_series(title_type: Optional[str]) -> bool:
    return title_type in SERIES_TITLE_TYPES


def split_genres(genres: Optional[str]) -> List[str]:
    if not genres:
        return []
    return genres.split(",")


def normalize_rating(row: Dict[str, Any], source: str = RATING_SOURCE) -> Dict[str, Any]:
    return {"source": source, "value": row["averagerating"], "votes": row["numvotes"]}


def season_key(season_number: Optional[int]) -> str:
    return UNKNOWN_SEASON if season_number is None else str(season_number)


def _season_sort_key(key: str):
    # numeric seasons first, "unknown" last
    return (1, 0) if key == UNKNOWN_SEASON else (0, int(key))


def group_seasons(rows: Iterable[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Group episode rows by season and order each season by episode number.

    Episodes without a number sort last; ties keep their input order.
    """
    seasons: Dict[str, List[Dict[str, Any]]] = {}
    for row in rows:
        seasons.setdefault(season_key(row["seasonnumber"]), []).append({
            "imdbId": row["tconst"],
            "episodeNumber": row["episodenumber"],
            "primaryTitle": row["primarytitle"],
            "originalTitle": row["originaltitle"],
            "runtimeMinutes": row["runtimeminutes"],
        })
    for episodes in seasons.values():
        episodes.sort(key=lambda e: (e["episodeNumber"] is None, e["episodeNumber"] or 0))
    return {key: seasons[key] for key in sorted(seasons, key=_season_sort_key)}


def normalize_title(
    title: Dict[str, Any],
    ratings: Iterable[Dict[str, Any]] = (),
    episodes: Optional[Iterable[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Build the NormalizedTitle document from source rows.

    ``episodes`` is only used for series-like titles; other titles never
    carry a ``seasons`` field.
    """
    document = {
        "imdbId": title["tconst"],
        "primaryTitle": title["primarytitle"],
        "originalTitle": title["originaltitle"],
        "startYear": title["startyear"],
        "endYear": title["endyear"],
        "runtimeMinutes": title["runtimeminutes"],
        "titleType": title["titletype"],
        "isAdult": bool(title["isadult"]),
        "genres": split_genres(title["genres"]),
        "ratings": [normalize_rating(row) for row in ratings],
    }
    if is_series(document["titleType"]):
        document["seasons"] = group_seasons(episodes or [])
    return document
