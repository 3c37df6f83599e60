"""
VCR - a local, single-user version control engine.

Snapshots a working directory into immutable frames, organises them into
independently advancing tracks, and supports tags and a staging area.
"""

__version__ = "0.1.0"

# Configuration is available at top level for convenience
from vcr.config import config

__all__ = ["config", "__version__"]
