"""Public package surface for navhistory.

Exports the ``HistoryService`` facade plus ``main`` for programmatic CLI
invocation. Most implementation lives in submodules under ``navhistory``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


def __getattr__(name: str):
    if name == "HistoryService":
        from .service import HistoryService

        return HistoryService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["HistoryService", "main"]
