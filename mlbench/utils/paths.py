import os
from pathlib import Path

# Obtains the route to the current directory (mlbench/utils)
_CURRENT_DIR = Path(__file__).resolve().parent

PROJECT_ROOT = _CURRENT_DIR.parent.parent

# Defining relative paths to the project root, overridable for installs
OUTPUTS_DIR = Path(os.environ.get("MLBENCH_OUTPUT_DIR", PROJECT_ROOT / "outputs"))
