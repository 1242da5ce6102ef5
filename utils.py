"""Utility functions for the Movie Shelf Bot: formatting, poster URLs and input parsing."""

import html
import re
from datetime import datetime
from typing import Optional

from config import TMDB_IMAGE_BASE_URL, logger
from cache import GenreIndex, MovieRecord

SHORT_OVERVIEW_LENGTH = 100
DECIMAL_PATTERN = re.compile(r"[0-9]+([.,][0-9]+)?")


def validate_and_build_poster_url(poster_path: Optional[str]) -> str:
    """
    Validate and build a proper TMDb poster URL.
    Returns empty string if poster_path is invalid.
    """
    if not poster_path:
        return ""

    poster_path = str(poster_path).strip()

    if not poster_path or len(poster_path) < 5:
        return ""

    if not poster_path.startswith("/"):
        poster_path = "/" + poster_path

    valid_pattern = r'^/[a-zA-Z0-9_\-/]+\.(jpg|jpeg|png|webp)$'
    if not re.match(valid_pattern, poster_path, re.IGNORECASE):
        logger.warning(f"Invalid poster_path format: {poster_path[:50]}")
        return ""

    return f"{TMDB_IMAGE_BASE_URL}{poster_path}"


def _release_year(movie: MovieRecord) -> Optional[int]:
    release_date = movie.data.get("release_date")
    if not release_date:
        return None
    try:
        return datetime.strptime(str(release_date)[:10], "%Y-%m-%d").year
    except ValueError:
        return None


def format_rating(value: float) -> str:
    """8.0 -> '8', 7.25 -> '7.25'."""
    return f"{value:g}"


def format_movie_short(movie: MovieRecord) -> str:
    """Compact card: title, year, rating and a trimmed overview."""
    year = _release_year(movie)
    overview = movie.data.get("overview") or ""
    if len(overview) > SHORT_OVERVIEW_LENGTH:
        overview = overview[:SHORT_OVERVIEW_LENGTH] + "..."

    text = f"🎬 <b>{html.escape(movie.title)}</b> ({year or '????'})\n"
    text += f"⭐ Rating: {format_rating(movie.vote_average)}/10"
    if movie.user_rating is not None:
        text += f"\n🧑‍💻 Your rating: {format_rating(movie.user_rating)}/10"
    text += f"\n📝 {html.escape(overview)}"
    return text


def format_movie_full(movie: MovieRecord, genres: GenreIndex) -> str:
    """Full card with genre names resolved through the genre index."""
    genre_names = []
    for genre_id in movie.data.get("genre_ids") or []:
        try:
            name = genres.name(int(genre_id))
        except (TypeError, ValueError):
            continue
        if name:
            genre_names.append(name)
    genres_text = ", ".join(genre_names) if genre_names else "Unknown"

    text = f"🎬 <b>{html.escape(movie.title)}</b>\n"
    text += f"📅 Year: {_release_year(movie) or '????'}\n"
    text += f"⭐ Rating: {format_rating(movie.vote_average)}/10"
    if movie.user_rating is not None:
        text += f"\n🧑‍💻 <b>Your rating:</b> {format_rating(movie.user_rating)}/10"
    text += f"\n🎭 Genres: {html.escape(genres_text)}"
    text += f"\n📝 Overview: {html.escape(movie.data.get('overview') or '')}"
    return text


def format_stats(watched: int, unwatched: int) -> str:
    return (
        "📊 <b>Your stats</b>:\n"
        f"✅ Watched: <b>{watched}</b>\n"
        f"💾 Saved for later: <b>{unwatched}</b>"
    )


def parse_decimal(text: str) -> Optional[float]:
    """Parse '8', '8.5' or '8,5'. Returns None for anything else."""
    if text is None:
        return None
    text = text.strip()
    # ASCII digits only; float() alone would take '1e1', '1_0' or '٨'
    if not DECIMAL_PATTERN.fullmatch(text):
        return None
    return float(text.replace(",", "."))


def parse_rating(text: str) -> Optional[float]:
    """Parse a rating or threshold in [1, 10]; None when invalid or out of range."""
    value = parse_decimal(text)
    if value is None or not 1 <= value <= 10:
        return None
    return value
