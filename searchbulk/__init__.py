"""searchbulk - bulk request bodies for parent/child search documents."""

__version__ = "0.1.0"
