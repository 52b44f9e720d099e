"""HTTP API for filing-desk."""
