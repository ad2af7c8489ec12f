"""Application bootstrap helpers for the FlashMath project."""

from .runtime import build_review_workflow, run_app
from .settings import AppSettings

__all__ = ["run_app", "build_review_workflow", "AppSettings"]
