"""Remote persistence and the seeding pipeline."""
