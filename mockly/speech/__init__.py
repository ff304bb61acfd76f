"""Speech text preparation and synthesis."""
