"""Module entry point for python -m tiling_suite."""

from __future__ import annotations

from tiling_suite.app import main


if __name__ == "__main__":
    raise SystemExit(main())
