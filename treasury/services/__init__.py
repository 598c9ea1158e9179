"""Domain services for the treasury."""
