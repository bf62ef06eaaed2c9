"""
System-related API models.

This module contains models for system status and monitoring:
- System status information
- Rate limit status per identity
- API usage statistics
"""

from typing import Dict, Optional

from pydantic import BaseModel


class SystemStatus(BaseModel):
    """System status information"""

    status: str
    uptime: float
    environment: str
    rate_limit_identities: int
    generation_enabled: bool = False


class RateLimitStatus(BaseModel):
    """Window status of one rate-limit identity"""

    identity: str
    capacity: int
    window_ms: int
    used: int
    remaining: int
    retry_after_ms: int


class OperationUsageStats(BaseModel):
    """Counters for one outbound operation"""

    success: int
    failure: int
    last_called_at: Optional[str] = None


class UsageStatistics(BaseModel):
    """API usage statistics"""

    total: int
    succeeded: int
    failed: int
    success_rate: float
    operations: Dict[str, OperationUsageStats]
