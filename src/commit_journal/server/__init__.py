"""HTTP routes for Commit Journal.

Requires optional ``[serve]`` dependencies::

    pip install commit-journal[serve]
"""

from __future__ import annotations


def _check_deps() -> None:
    """Raise a clear error if [serve] dependencies are missing."""
    missing = []
    try:
        import starlette  # noqa: F401
    except ImportError:
        missing.append("starlette")
    try:
        import uvicorn  # noqa: F401
    except ImportError:
        missing.append("uvicorn")

    if missing:
        raise ImportError(
            f"Missing serve dependencies: {', '.join(missing)}. "
            "Install with: pip install commit-journal[serve]"
        )
