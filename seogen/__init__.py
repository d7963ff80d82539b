"""seogen — keyword research and article generation pipelines."""

__version__ = "0.1.0"
