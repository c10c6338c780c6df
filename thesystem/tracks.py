"""Starter tracks offered during onboarding.

Tracks ship as packaged YAML (data/tracks.yaml) and are loaded once. Each track
seeds the player's habits, quests and shop rewards when chosen.
"""

from __future__ import annotations

from functools import cache
from importlib import resources
from typing import Any

import yaml

from . import const
from .type_defs import TrackData

TRACKS_RESOURCE = "tracks.yaml"


class TrackLoadError(Exception):
    """Raised when the packaged track data cannot be read."""


@cache
def _load_tracks() -> tuple[TrackData, ...]:
    """Parse data/tracks.yaml."""
    try:
        raw = (
            resources.files(__package__)
            .joinpath("data", TRACKS_RESOURCE)
            .read_text(encoding=const.STORAGE_FILE_ENCODING)
        )
    except OSError as err:
        const.LOGGER.error("Track data could not be read: %s", err)
        raise TrackLoadError(f"Track data could not be read: {err}") from err

    try:
        config = yaml.safe_load(raw)
    except yaml.YAMLError as err:
        const.LOGGER.error("YAML parsing failed: %s", err)
        raise TrackLoadError(f"YAML parsing failed: {err}") from err

    if not isinstance(config, dict) or not isinstance(config.get("tracks"), list):
        raise TrackLoadError("Track data must contain a 'tracks' list")

    tracks: list[TrackData] = []
    for raw_track in config["tracks"]:
        track: dict[str, Any] = dict(raw_track)
        track.setdefault("habits", [])
        track.setdefault("quests", [])
        track.setdefault("rewards", [])
        tracks.append(track)  # type: ignore[arg-type]
    const.LOGGER.debug("Loaded %d starter tracks", len(tracks))
    return tuple(tracks)


def list_tracks() -> list[TrackData]:
    """Return every starter track in display order."""
    return list(_load_tracks())


def get_track(track_id: str) -> TrackData | None:
    """Return the track with the given id, or None."""
    for track in _load_tracks():
        if track["id"] == track_id:
            return track
    return None


def track_ids() -> list[str]:
    """Ids of every starter track."""
    return [track["id"] for track in _load_tracks()]
