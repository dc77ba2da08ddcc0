"""Arrow schemas and output path helpers."""
