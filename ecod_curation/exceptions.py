#!/usr/bin/env python3
"""
Exception hierarchy for the ECOD cluster curation toolkit.
All custom exceptions should inherit from ECODError.
"""
from typing import Dict, Any, Optional


class ECODError(Exception):
    """Base exception for all ECOD curation errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize with error message and optional details

        Args:
            message: Error message
            details: Optional details dictionary with context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ECODError):
    """Error related to configuration issues"""
    pass


class DatabaseError(ECODError):
    """Base class for database-related errors"""
    pass


class ConnectionError(DatabaseError):
    """Error connecting to a database"""
    pass


class QueryError(DatabaseError):
    """Error executing a database query"""
    pass


class ValidationError(ECODError):
    """Data validation error"""
    pass


class NotFoundError(ECODError):
    """Requested entity does not exist"""
    pass


class ReclassificationError(ECODError):
    """Reclassification decision cannot be applied"""
    pass


class AlignmentError(ECODError):
    """Error parsing or analysing a multiple sequence alignment"""
    pass


class ExportError(ECODError):
    """Error writing exported data"""
    pass
