"""cpp2ls: project symbol index and cross-file resolution for Cpp2."""

from __future__ import annotations

__version__ = "0.1.0"
