"""SchedulerConfig -- 升级/提醒调度配置加载

环境变量前缀 POLICYHUB_ESCALATION_，非法值记录 warning 后回退默认值，不阻塞启动。
"""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from pydantic import BaseModel, Field, field_validator

log = structlog.get_logger()


class SchedulerConfig(BaseModel):
    """调度配置

    环境变量:
        POLICYHUB_ESCALATION_INTERVAL_MINUTES: 周期间隔（分钟，默认 15）
        POLICYHUB_ESCALATION_PROCESS_TASK_ESCALATIONS: 任务逾期升级开关
        POLICYHUB_ESCALATION_PROCESS_APPROVAL_REMINDERS: 审批提醒开关
        POLICYHUB_ESCALATION_PROCESS_TASK_DUE_DATE_REMINDERS: 任务到期提醒开关
        POLICYHUB_ESCALATION_PROCESS_POLICY_REMINDERS: 策略确认提醒开关
        POLICYHUB_ESCALATION_DUE_DATE_REMINDER_HOURS: 任务到期提醒窗口（小时，默认 24）
        POLICYHUB_ESCALATION_MAX_TASKS_PER_RUN: 每次最多处理任务数（默认 500）
        POLICYHUB_ESCALATION_MAX_APPROVALS_PER_RUN: 每次最多处理审批数（默认 200）
        POLICYHUB_ESCALATION_MAX_POLICY_ACKNOWLEDGEMENTS_PER_RUN: 每次最多处理策略确认数（默认 500）
        POLICYHUB_ESCALATION_REMINDER_TIMEZONE: 同日去重使用的时区（默认 UTC）
        POLICYHUB_ESCALATION_AUTO_START: 宿主启动时是否自动开启周期驱动
    """

    interval_minutes: float = Field(default=15, gt=0, description="周期间隔（分钟）")
    process_task_escalations: bool = Field(default=True, description="任务逾期升级")
    process_approval_reminders: bool = Field(default=True, description="审批提醒")
    process_task_due_date_reminders: bool = Field(default=True, description="任务到期提醒")
    process_policy_reminders: bool = Field(default=True, description="策略确认提醒")
    due_date_reminder_hours: int = Field(default=24, ge=1, description="任务到期提醒窗口（小时）")
    max_tasks_per_run: int = Field(default=500, ge=1)
    max_approvals_per_run: int = Field(default=200, ge=1)
    max_policy_acknowledgements_per_run: int = Field(default=500, ge=1)
    reminder_timezone: str = Field(default="UTC", description="同日去重日历所用时区")
    auto_start: bool = Field(default=False, description="宿主启动时自动开启周期驱动")

    @field_validator("reminder_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {value}") from e
        return value


_ENV_PREFIX = "POLICYHUB_ESCALATION_"

_BOOL_FIELDS = (
    "process_task_escalations",
    "process_approval_reminders",
    "process_task_due_date_reminders",
    "process_policy_reminders",
    "auto_start",
)

_INT_FIELDS = (
    "due_date_reminder_hours",
    "max_tasks_per_run",
    "max_approvals_per_run",
    "max_policy_acknowledgements_per_run",
)


def _parse_bool(value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    return None


def load_scheduler_config() -> SchedulerConfig:
    """从环境变量加载调度配置

    Returns:
        SchedulerConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get(f"{_ENV_PREFIX}INTERVAL_MINUTES"):
        try:
            interval = float(val)
            if interval <= 0:
                raise ValueError(val)
            kwargs["interval_minutes"] = interval
        except ValueError:
            log.warning(
                "invalid_scheduler_config",
                env_var=f"{_ENV_PREFIX}INTERVAL_MINUTES",
                value=val,
                fallback=15,
            )

    for field in _BOOL_FIELDS:
        env_var = f"{_ENV_PREFIX}{field.upper()}"
        if val := os.environ.get(env_var):
            parsed = _parse_bool(val)
            if parsed is None:
                log.warning("invalid_scheduler_config", env_var=env_var, value=val)
                continue
            kwargs[field] = parsed

    for field in _INT_FIELDS:
        env_var = f"{_ENV_PREFIX}{field.upper()}"
        if val := os.environ.get(env_var):
            try:
                parsed_int = int(val)
                if parsed_int < 1:
                    raise ValueError(val)
                kwargs[field] = parsed_int
            except ValueError:
                log.warning("invalid_scheduler_config", env_var=env_var, value=val)

    if val := os.environ.get(f"{_ENV_PREFIX}REMINDER_TIMEZONE"):
        try:
            ZoneInfo(val)
            kwargs["reminder_timezone"] = val
        except (ZoneInfoNotFoundError, ValueError):
            log.warning(
                "invalid_scheduler_config",
                env_var=f"{_ENV_PREFIX}REMINDER_TIMEZONE",
                value=val,
                fallback="UTC",
            )

    return SchedulerConfig(**kwargs)
