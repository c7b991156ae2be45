"""Feature modules of the site settings service."""
