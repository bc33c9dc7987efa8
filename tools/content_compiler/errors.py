from __future__ import annotations


class CompilerError(Exception):
    """Unrecoverable failure: the run stops and exits non-zero."""
