"""Run the importer with ``python -m halo_importer``."""

from __future__ import annotations

import sys

from halo_importer.cli import main

if __name__ == "__main__":
    sys.exit(main())
