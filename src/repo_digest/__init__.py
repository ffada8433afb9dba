"""repo-digest - repository context extraction for LLM summarization."""

__version__ = "0.1.0"
