"""Access to the content under moderation."""
