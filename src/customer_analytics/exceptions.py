"""Domain-specific exceptions for customer analytics.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from AnalyticsError for easy catching.
"""


class AnalyticsError(Exception):
    """Base exception for all customer analytics errors.

    Users can catch this exception to handle any error raised by the
    package, whether it comes from configuration, the store, or the data.
    """

    pass


class ConfigError(AnalyticsError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid configuration values are provided
    - Required environment variables cannot be parsed
    """

    pass


class DataQualityError(AnalyticsError):
    """Raised when input frames are not usable.

    This exception is raised when:
    - Required columns are missing from input data
    - Identifier columns contain duplicates where uniqueness is required
    """

    pass


class StoreError(AnalyticsError):
    """Raised when an operation against the relational store fails."""

    pass


class StoreConnectionError(StoreError):
    """Raised when the store cannot be reached.

    This exception is raised when:
    - The database server refuses or drops the connection
    - Authentication fails
    - The database URL points to a missing driver
    """

    pass


class QueryError(StoreError):
    """Raised when a query or statement is rejected by the store."""

    pass


class DecodeError(StoreError):
    """Raised when rows returned by the store cannot be converted.

    For example a non-numeric price or a NULL customer id.
    """

    pass
