"""
Pydantic / datamodels used by the LogIngest runtime.

Split into:
- log_models: LogEntry + LogLevel + LogQuery
- api_models: HTTP request/response schemas
"""
