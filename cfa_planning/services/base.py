# cfa_planning/services/base.py
"""
Shared plumbing for the planning services.

Every service owns its unit of work through transaction(), and public
operations are wrapped with BaseService.measure_operation so that their
durations end up in the in-process counters, in Prometheus, and in the log
when they are slow.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _empty_stats() -> Dict[str, Any]:
    return {
        "count": 0,
        "total_time": 0.0,
        "success_count": 0,
        "failure_count": 0,
        "min_time": float("inf"),
        "max_time": 0.0,
    }


class BaseService:
    """Session holder with transaction handling and operation timing."""

    # {service class name: {operation: stats}}
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit the session when the block exits normally, roll back otherwise.

        Domain exceptions raised inside the block propagate unchanged;
        SQLAlchemy errors are converted to ServiceException.
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Rolled back after database error: {str(e)}")
            raise ServiceException(
                "Database operation failed", code="DATABASE_ERROR", details={"error": str(e)}
            ) from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method under ``operation_name``.

        Usage:
            @BaseService.measure_operation("materialize")
            def materialize(self, slot_id, force_regenerate=False): ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                started = time.perf_counter()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - started
                    self._record_metric(operation_name, elapsed, error_type is None)
                    if elapsed > settings.slow_operation_threshold_seconds:
                        self.logger.warning(f"{operation_name} took {elapsed:.2f}s")
                    if settings.metrics_enabled:
                        try:
                            prometheus_metrics.record_service_operation(
                                service=self.__class__.__name__,
                                operation=operation_name,
                                duration=elapsed,
                                status="error" if error_type else "success",
                                error_type=error_type,
                            )
                        except Exception:
                            logger.debug("Prometheus update failed for %s", operation_name)

            return cast(F, wrapper)

        return decorator

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        per_service = BaseService._class_metrics.setdefault(self.__class__.__name__, {})
        stats = per_service.setdefault(operation, _empty_stats())
        stats["count"] += 1
        stats["total_time"] += elapsed
        stats["min_time"] = min(stats["min_time"], elapsed)
        stats["max_time"] = max(stats["max_time"], elapsed)
        stats["success_count" if success else "failure_count"] += 1

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Per-operation stats of this service class, with average time and success rate."""
        report = {}
        for operation, stats in BaseService._class_metrics.get(self.__class__.__name__, {}).items():
            count = stats["count"]
            report[operation] = {
                **stats,
                "avg_time": stats["total_time"] / count if count else 0.0,
                "success_rate": stats["success_count"] / count if count else 0.0,
            }
        return report

    def reset_metrics(self) -> None:
        BaseService._class_metrics.pop(self.__class__.__name__, None)
