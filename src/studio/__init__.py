"""MapStyle Studio HTTP service."""
