"""Allow ``python -m memcached_exporter``."""

from memcached_exporter.cli import main

if __name__ == "__main__":
    main()
