"""Application entrypoints: API service and migration runner."""
