"""Faculty enrollment analytics and CSV export."""
