"""
Database package: persistence of submitted inspections.
"""

from .db_manager import DatabaseManager

__all__ = ['DatabaseManager']
