"""Compatibility module for plain ``uvicorn`` commands.

``uvicorn app:app --reload`` keeps working thanks to this module; the
FastAPI app itself lives in :mod:`roomplanner.app`.
"""

from roomplanner.app import app

__all__ = ["app"]
