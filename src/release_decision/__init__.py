"""Release Decision.

Parses free-text release titles into structured metadata and decides which
candidate release to grab, upgrade to or reject for a wanted media item.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("release-decision")
except PackageNotFoundError:
    # Fallback for source checkouts that are not installed
    __version__ = "0.0.0+unknown"
