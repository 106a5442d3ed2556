"""mp3grab - video URL to MP3 conversion service."""

__version__ = "0.1.0"
