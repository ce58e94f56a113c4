"""Student progress tracking and sequential module unlocking."""
