"""
Repository metadata handling.

This package is responsible for:
* Parsing repomd.xml documents into per data-type records.
* Fetching the metadata document from the remote repository or the local cache.
* Persisting the last retrieved document into the cache directory.
"""
