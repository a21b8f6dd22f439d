"""Security helpers for sqlquill."""

from .dsns import DSNConfig, build_dsn, parse_dsn
from .redaction import redact_params, redact_value

__all__ = ["DSNConfig", "build_dsn", "parse_dsn", "redact_params", "redact_value"]
