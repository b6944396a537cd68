import sys
from pathlib import Path

# Allow importing msclean from the repository root without installing it
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
