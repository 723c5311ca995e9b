"""remapfilter: resolve variant placements on a new genome assembly.

Public API is intentionally small; most users should use the CLI:

    remapfilter filter --mappings ... --features ... --outdir ...

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
