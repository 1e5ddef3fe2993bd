"""ProjectAI local database layer — SQLAlchemy models for sql backend mode."""
