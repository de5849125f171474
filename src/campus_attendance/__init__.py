"""Campus attendance session service."""
