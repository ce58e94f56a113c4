"""Course catalog and faculty course management."""
