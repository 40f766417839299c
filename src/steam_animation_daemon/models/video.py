from dataclasses import dataclass


@dataclass(frozen=True)
class TranscodeSettings:
    """Encoding settings; every field is part of the cache key"""
    max_duration: int   # seconds
    width: int
    height: int
    quality: int        # VP9 CRF


@dataclass(frozen=True)
class VideoInfo:
    """ffprobe summary of a media file"""
    duration: float
    width: int
    height: int
    codec: str
