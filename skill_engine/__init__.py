"""Session-scoped skill engine for LLM agents."""
