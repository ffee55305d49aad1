"""Tests for filename guessing."""

from pathlib import Path
from unittest.mock import patch

from torrentify.services.guess import FilenameGuesser, Guess


def test_guess_from_guessit_result():
    with patch(
        "torrentify.services.guess.guessit",
        return_value={"title": "Movie One", "year": 2020},
    ):
        guess = FilenameGuesser().guess(Path("/films/Movie.One.2020.1080p.mkv"))

    assert guess == Guess(title="Movie One", year=2020)


def test_ambiguous_values_take_first():
    with patch(
        "torrentify.services.guess.guessit",
        return_value={"title": ["Discovery", "Other"], "artist": ["Daft Punk"], "year": [2001, 2002]},
    ):
        guess = FilenameGuesser().guess(Path("/music/x.flac"))

    assert guess == Guess(title="Discovery", year=2001, artist="Daft Punk")


def test_missing_title_falls_back_to_stem():
    with patch("torrentify.services.guess.guessit", return_value={}):
        assert FilenameGuesser().guess(Path("/music/01 Intro.flac")).title == "01 Intro"


def test_guessit_failure_never_raises():
    with patch("torrentify.services.guess.guessit", side_effect=RuntimeError("boom")):
        guess = FilenameGuesser().guess(Path("/films/weird.mkv"))

    assert guess == Guess(title="weird")


def test_real_guessit_parses_movie_name():
    guess = FilenameGuesser().guess(Path("/films/Movie.One.2020.1080p.BluRay.x264.mkv"))

    assert guess.title == "Movie One"
    assert guess.year == 2020
