"""LLM collaborators: schema detection and fact extraction."""
