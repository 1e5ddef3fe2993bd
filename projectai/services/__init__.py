"""ProjectAI services — auth, validation, filtering, audit and formatting."""
