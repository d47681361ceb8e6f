"""LLM-backed summary and chat for the Intelligence Desk."""
