"""Runtime layer: page fetchers and the pagination engine."""
