"""mysqldeploy REST API."""
