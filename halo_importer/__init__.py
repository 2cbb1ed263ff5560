"""Import Halo actions from CSV and spreadsheet exports.

The importer reconciles locally held action rows against the identifiers
already stored in Halo and submits only the missing ones through the
authenticated Halo API.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
