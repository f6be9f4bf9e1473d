"""nerdfeed: ranking, clustering and digest curation for an ML/AI news feed."""

__version__ = "0.1.0"
