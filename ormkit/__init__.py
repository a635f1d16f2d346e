"""Building blocks for an SQL object mapper: ordered callbacks, SQL dialects, errors, log formatting and JSON column values."""

__version__ = "0.1.0"