"""
Image URL clean-up.

Some hosts publish artwork URLs with a stray query marker, e.g.
``cover?.jpg`` or ``cover.png?``, which image proxies reject.
"""

import re

from cadence_core.schemas import ParsedAlbum

_QUERY_BEFORE_JPG = re.compile(r"\?\.jpg$")
_TRAILING_QUERY_DOT = re.compile(r"\?\.$")
_TRAILING_QUERY = re.compile(r"\?$")


def clean_image_url(image_url: str | None) -> str | None:
    """Remove malformed trailing query markers from an image URL."""
    if not image_url:
        return None
    cleaned = _QUERY_BEFORE_JPG.sub(".jpg", image_url)
    cleaned = _TRAILING_QUERY_DOT.sub("", cleaned)
    return _TRAILING_QUERY.sub("", cleaned)


def clean_album_images(album: ParsedAlbum) -> ParsedAlbum:
    """Return a copy of ``album`` with cover art and track images cleaned."""
    tracks = [
        track.model_copy(update={"image": clean_image_url(track.image) or track.image})
        if track.image
        else track
        for track in album.tracks
    ]
    update: dict[str, object] = {"tracks": tracks}
    if album.cover_art:
        update["cover_art"] = clean_image_url(album.cover_art) or album.cover_art
    return album.model_copy(update=update)
