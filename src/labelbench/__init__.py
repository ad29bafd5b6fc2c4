"""labelbench — benchmark connected-components labeling algorithms."""

__version__ = "0.1.0"
