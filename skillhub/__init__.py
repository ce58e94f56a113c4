"""SkillHub learning platform API."""
