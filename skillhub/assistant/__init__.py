"""SkillBot, the AI learning assistant for students."""
