"""Application services: configuration, the batch pipeline and the CLI."""
