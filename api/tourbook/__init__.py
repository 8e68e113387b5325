"""Tourbook API - tour booking service over PostgreSQL, MongoDB, Oracle and Cassandra"""

__version__ = "1.0.0"
