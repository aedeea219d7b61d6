"""尽力而为调用封装

二级通道镜像、审计写入等旁路操作通过 best_effort() 执行：
错误被记录为 warning 并以 BestEffortResult 返回，不会抛给调用方。
取消（CancelledError）不属于 Exception，照常传播。
"""

from collections.abc import Awaitable, Callable

import structlog

from .models import BestEffortResult

log = structlog.get_logger()


async def best_effort(
    operation: str,
    call: Callable[[], Awaitable[object]],
    **log_context,
) -> BestEffortResult:
    """执行旁路操作，失败只记录不抛出

    Args:
        operation: 操作名称（用于日志事件名）
        call: 无参 awaitable 工厂
        **log_context: 附加日志字段

    Returns:
        BestEffortResult
    """
    try:
        await call()
    except Exception as e:
        log.warning(
            f"{operation}_failed",
            error=str(e),
            error_type=type(e).__name__,
            **log_context,
        )
        return BestEffortResult(ok=False, error=f"{type(e).__name__}: {e}")
    return BestEffortResult(ok=True)
