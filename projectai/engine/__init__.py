"""ProjectAI engine — config, errors, logging, caching and session context."""
