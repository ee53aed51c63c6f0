"""
YUM repository metadata synchronization and package queries.

Fetches a repository's repomd.xml, keeps a local cache of it current and picks
exactly one package database backend to answer queries.
"""

__version__ = "0.1.0"
