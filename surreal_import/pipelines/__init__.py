"""Import pipelines: table setup and CSV ingestion."""
