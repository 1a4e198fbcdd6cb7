"""Map-based activity tracker.

Record running and cycling activities at map locations, keep them in a
persisted store, and render them as map markers and an activity list.
"""

__version__ = "0.1.0"

__author__ = "maptrack contributors"
__license__ = "Apache-2.0"

__all__ = ["__version__"]
