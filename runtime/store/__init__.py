"""
Storage abstractions for the LogIngest runtime.

Includes:
- LogStore: append-only, file-backed collection of validated log entries
"""
