"""
Tests for document validation.
"""

import pytest

from catalogsync.schema import InvalidDocumentError, validate_document


@pytest.fixture
def movie_document():
    return {
        "imdbId": "tt0000001",
        "primaryTitle": "Carmencita",
        "originalTitle": "Carmencita",
        "startYear": 1894,
        "endYear": None,
        "runtimeMinutes": 1,
        "titleType": "movie",
        "isAdult": False,
        "genres": ["Documentary", "Short"],
        "ratings": [{"source": "IMDB", "value": 5.7, "votes": 1900}],
    }


@pytest.fixture
def series_document(movie_document):
    return {
        **movie_document,
        "imdbId": "tt0000002",
        "titleType": "tvSeries",
        "seasons": {
            "1": [{
                "imdbId": "tt0000010",
                "episodeNumber": 1,
                "primaryTitle": "Pilot",
                "originalTitle": "Pilot",
                "runtimeMinutes": 42,
            }],
        },
    }


class TestValidateDocument:

    def test_valid_movie(self, movie_document):
        assert validate_document(movie_document) == []

    def test_valid_series(self, series_document):
        assert validate_document(series_document) == []

    def test_missing_imdb_id(self, movie_document):
        del movie_document["imdbId"]
        errors = validate_document(movie_document)
        assert any("imdbId" in err for err in errors)

    def test_null_genres(self, movie_document):
        movie_document["genres"] = None
        errors = validate_document(movie_document)
        assert any("genres" in err for err in errors)

    def test_seasons_on_movie(self, movie_document):
        movie_document["seasons"] = {}
        errors = validate_document(movie_document)
        assert any("seasons" in err for err in errors)

    def test_series_without_seasons(self, series_document):
        del series_document["seasons"]
        errors = validate_document(series_document)
        assert any("seasons" in err for err in errors)

    def test_duplicate_rating_source(self, movie_document):
        movie_document["ratings"].append({"source": "IMDB", "value": 1.0, "votes": 1})
        errors = validate_document(movie_document)
        assert any("one rating per source" in err for err in errors)

    def test_episode_missing_fields(self, series_document):
        series_document["seasons"]["1"][0].pop("episodeNumber")
        errors = validate_document(series_document)
        assert any("episodeNumber" in err for err in errors)

    def test_year_must_be_int(self, movie_document):
        movie_document["startYear"] = "1894"
        errors = validate_document(movie_document)
        assert any("startYear" in err for err in errors)

    def test_adult_flag_must_be_bool(self, movie_document):
        movie_document["isAdult"] = 0
        errors = validate_document(movie_document)
        assert any("isAdult" in err for err in errors)


class TestInvalidDocumentError:

    def test_message_lists_errors(self):
        err = InvalidDocumentError("tt1", ["a", "b"])
        assert "tt1" in str(err)
        assert err.errors == ["a", "b"]
        assert isinstance(err, ValueError)
