"""Data acquisition: registry source, proxy transport, metric fetchers, batch runner."""
