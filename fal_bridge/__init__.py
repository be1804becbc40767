"""FAL Image Bridge: fal.ai queue orchestration behind a small web API."""

__version__ = "0.1.0"
