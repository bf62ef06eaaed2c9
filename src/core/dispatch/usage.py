"""
API usage tracking - per-operation success/failure counters
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class OperationUsage:
    """Counters for one outbound operation"""

    operation: str
    success_count: int = 0
    failure_count: int = 0
    last_called_at: Optional[datetime] = None
    last_success: Optional[bool] = None

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


class ApiUsageTracker:
    """Session-scoped record of outbound calls to the generation service"""

    def __init__(self):
        self.operations: Dict[str, OperationUsage] = {}
        logger.info("API usage tracker initialized")

    def track(self, operation: str, success: bool) -> None:
        """
        Record the outcome of one outbound operation

        Args:
            operation: Operation name (e.g. "dissect_selection")
            success: Whether the call produced a usable result
        """
        usage = self.operations.setdefault(operation, OperationUsage(operation=operation))
        if success:
            usage.success_count += 1
        else:
            usage.failure_count += 1
        usage.last_called_at = datetime.now()
        usage.last_success = success

        logger.debug(
            f"API usage {operation}: {'ok' if success else 'failed'} "
            f"({usage.success_count} ok / {usage.failure_count} failed)"
        )

    def get(self, operation: str) -> Optional[OperationUsage]:
        return self.operations.get(operation)

    def get_statistics(self) -> Dict[str, Any]:
        """Get usage statistics"""
        total = sum(u.total for u in self.operations.values())
        succeeded = sum(u.success_count for u in self.operations.values())

        return {
            "total": total,
            "succeeded": succeeded,
            "failed": total - succeeded,
            "success_rate": round(succeeded / total * 100, 2) if total else 0.0,
            "operations": {
                name: {
                    "success": u.success_count,
                    "failure": u.failure_count,
                    "last_called_at": u.last_called_at.isoformat() if u.last_called_at else None,
                }
                for name, u in sorted(self.operations.items())
            },
        }

    def clear(self):
        """Clear all counters"""
        self.operations.clear()
        logger.info("API usage cleared")
