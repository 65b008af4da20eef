"""AI-assisted drafting - prompts and the drafting service."""
