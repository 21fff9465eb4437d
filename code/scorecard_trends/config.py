# File Description: Declaring global paths
# Date Created: Oct 2026
import os
from pathlib import Path

#######################
### DECLARING PATHS ###
#######################
# checkout root (one level above code/)
repo_root = Path(__file__).resolve().parents[2]

# data root can live outside the checkout (e.g. a shared drive)
root = os.environ.get("SCORECARD_TRENDS_ROOT", str(repo_root))
code = str(repo_root / "code")

# separate in and out paths for reading/writing data
data_in = f"{root}/data/raw"
data_out = f"{root}/output"
