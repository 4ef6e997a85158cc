"""Adapters connecting the core to memcached, the OS and HTTP."""
