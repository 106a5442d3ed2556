"""Acquisition strategies."""

from mp3grab.services.strategies.base import IAcquisitionStrategy
from mp3grab.services.strategies.local_tool import YtDlpStrategy
from mp3grab.services.strategies.remote_api import RemoteApiStrategy
from mp3grab.services.strategies.stream_transcode import StreamTranscodeStrategy

__all__ = [
    "IAcquisitionStrategy",
    "RemoteApiStrategy",
    "StreamTranscodeStrategy",
    "YtDlpStrategy",
]
