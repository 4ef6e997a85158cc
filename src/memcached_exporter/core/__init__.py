"""Core translation of memcached stats into metrics. No I/O lives here."""
