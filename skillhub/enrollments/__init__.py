"""Course enrollments, rosters and roster export."""
