"""Shared pytest setup: headless matplotlib and src/ on the import path."""

import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

_src_dir = Path(__file__).parent.parent.resolve() / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))
