"""ProjectAI role model — role resolution, role gates and project access checks."""
