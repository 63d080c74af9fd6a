"""
lockwatch - hold newly created files until their writer lets go.

Watches a directory, debounces creation events per file, and probes each
file for an exclusive lock with a fixed delay and a bounded number of
retries before handing it to the host.
"""

__version__ = "0.1.0"
