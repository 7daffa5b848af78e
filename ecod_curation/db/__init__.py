"""
Database access layer for the ECOD curation toolkit
"""
from .manager import DBManager

__all__ = ['DBManager']
