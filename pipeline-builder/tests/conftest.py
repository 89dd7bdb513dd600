import sys
from pathlib import Path


# Ensure pipeline-builder is on sys.path for tests that import the package directly.
PIPELINE_BUILDER_DIR = Path(__file__).resolve().parents[1]
if str(PIPELINE_BUILDER_DIR) not in sys.path:
    sys.path.insert(0, str(PIPELINE_BUILDER_DIR))
