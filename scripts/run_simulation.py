"""Run the free-flyer reaching simulation from the command line.

Examples:
    python scripts/run_simulation.py --preset limited --plot
    python scripts/run_simulation.py --preset coupled --target 3 5 --animate
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add src directory to path for free_flyer_sim imports
_script_dir = Path(__file__).parent.resolve()
_src_dir = _script_dir.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from free_flyer_sim.cli import main


if __name__ == "__main__":
    sys.exit(main())
