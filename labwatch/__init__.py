"""labwatch — TCP reachability monitor for a small set of lab services."""

__version__ = "0.1.0"
