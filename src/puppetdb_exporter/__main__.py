"""Module entrypoint to support ``python -m puppetdb_exporter`` invocation."""

from __future__ import annotations

from puppetdb_exporter.cli.main import main

if __name__ == "__main__":
    main()
