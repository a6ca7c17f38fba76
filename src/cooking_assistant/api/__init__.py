"""HTTP API for the Cooking Assistant."""
