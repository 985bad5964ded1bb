from .retry import RetryPolicy, call_with_retry, compute_backoff

__all__ = ["RetryPolicy", "call_with_retry", "compute_backoff"]
