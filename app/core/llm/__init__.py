"""LLM integration layer.

This package is intentionally small and conservative:
- No prompt/output logging (may contain user data).
- Configuration is injected explicitly; the client never reads the environment.
- Treated as a pure/stateless function by callers.
"""
