"""Owner notifications."""
