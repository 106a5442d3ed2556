"""HTTP API for mp3grab."""
