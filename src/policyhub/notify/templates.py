"""通知模板与静态映射表

每种 NotificationType 对应一个主题模板和纯文本正文模板（封闭集合）。
类型 -> 优先级 / 分类 / 跨系统通知类型 为静态查找数据；
未知类型降级为 Low / Info / SystemAlert，不抛异常。
"""

import re

from pydantic import BaseModel, Field

from policyhub.core.config import SECONDARY_BODY_MAX_CHARS
from policyhub.core.models import (
    NotificationCategory,
    NotificationPriority,
    NotificationType,
)


class TemplateContext(BaseModel):
    """模板渲染上下文"""

    title: str = Field(description="义务标题")
    reference: str = Field(default="", description="业务编号")
    due_date_text: str = Field(default="", description="截止日期文本")
    hours_to_due: int = Field(default=0, description="距截止小时数")
    days_overdue: int = Field(default=0, description="逾期天数")
    assignee_name: str = Field(default="", description="负责人显示名（上级告警用）")
    link_url: str = Field(default="", description="跳转链接")


_SUBJECTS: dict[NotificationType, str] = {
    NotificationType.POLICY_REMINDER_3_DAY: "Reminder: 3 Days to Acknowledge - {title}",
    NotificationType.POLICY_REMINDER_1_DAY: "Urgent Reminder: Acknowledge Tomorrow - {title}",
    NotificationType.POLICY_OVERDUE: "OVERDUE: Policy Acknowledgement Required - {title}",
    NotificationType.TASK_REMINDER: "Task Reminder: {title}",
    NotificationType.TASK_ESCALATION: "Task Escalation: {title} is overdue",
    NotificationType.APPROVAL_REMINDER: "Reminder: Approval Required - {title}",
    NotificationType.APPROVAL_OVERDUE: "Overdue Approval: {title}",
    NotificationType.MANAGER_OVERDUE_ALERT: "Team Member Overdue: {assignee_name} - {title}",
}

_BODIES: dict[NotificationType, str] = {
    NotificationType.POLICY_REMINDER_3_DAY: (
        "You have 3 days remaining to acknowledge {reference} {title}.\n"
        "Due: {due_date_text}\n\n"
        "Acknowledge now: {link_url}\n\n"
        "This is reminder 1 of 2. You will receive a final reminder 1 day before the due date."
    ),
    NotificationType.POLICY_REMINDER_1_DAY: (
        "This policy acknowledgement is due TOMORROW. Please take action today.\n\n"
        "{reference} {title}\nDue: {due_date_text}\n\n"
        "Acknowledge immediately: {link_url}\n\n"
        "Failure to acknowledge by the due date may result in compliance escalation "
        "to your manager."
    ),
    NotificationType.POLICY_OVERDUE: (
        "Your acknowledgement of {reference} {title} is {days_overdue} day(s) overdue.\n"
        "Due: {due_date_text}\n\n"
        "Acknowledge now: {link_url}\n\n"
        "Your manager has been notified."
    ),
    NotificationType.TASK_REMINDER: (
        'Task "{title}" is due in {hours_to_due} hours.\n'
        "Due: {due_date_text}\n\n"
        "Open task: {link_url}"
    ),
    NotificationType.TASK_ESCALATION: (
        'Task "{title}" is {days_overdue} day(s) overdue.\n'
        "Due: {due_date_text}\n\n"
        "Reason: due date passed without completion.\n"
        "Open task: {link_url}"
    ),
    NotificationType.APPROVAL_REMINDER: (
        "An approval is waiting for your decision: {title}.\n"
        "Due: {due_date_text}\n\n"
        "Review now: {link_url}"
    ),
    NotificationType.APPROVAL_OVERDUE: (
        "The approval {title} is {days_overdue} day(s) overdue.\n"
        "Due: {due_date_text}\n\n"
        "Review now: {link_url}"
    ),
    NotificationType.MANAGER_OVERDUE_ALERT: (
        "A member of your team has an overdue item.\n\n"
        "Employee: {assignee_name}\nItem: {reference} {title}\n"
        "Days overdue: {days_overdue}\n\n"
        "Details: {link_url}"
    ),
}

NOTIFICATION_PRIORITY: dict[NotificationType, NotificationPriority] = {
    NotificationType.POLICY_OVERDUE: NotificationPriority.HIGH,
    NotificationType.POLICY_REMINDER_1_DAY: NotificationPriority.HIGH,
    NotificationType.TASK_ESCALATION: NotificationPriority.HIGH,
    NotificationType.APPROVAL_OVERDUE: NotificationPriority.HIGH,
    NotificationType.MANAGER_OVERDUE_ALERT: NotificationPriority.HIGH,
    NotificationType.POLICY_REMINDER_3_DAY: NotificationPriority.MEDIUM,
    NotificationType.TASK_REMINDER: NotificationPriority.MEDIUM,
    NotificationType.APPROVAL_REMINDER: NotificationPriority.MEDIUM,
}

NOTIFICATION_CATEGORY: dict[NotificationType, NotificationCategory] = {
    NotificationType.POLICY_REMINDER_3_DAY: NotificationCategory.COMPLIANCE,
    NotificationType.POLICY_REMINDER_1_DAY: NotificationCategory.COMPLIANCE,
    NotificationType.POLICY_OVERDUE: NotificationCategory.COMPLIANCE,
    NotificationType.MANAGER_OVERDUE_ALERT: NotificationCategory.COMPLIANCE,
    NotificationType.TASK_REMINDER: NotificationCategory.TASK,
    NotificationType.TASK_ESCALATION: NotificationCategory.TASK,
    NotificationType.APPROVAL_REMINDER: NotificationCategory.APPROVAL,
    NotificationType.APPROVAL_OVERDUE: NotificationCategory.APPROVAL,
}

HUB_NOTIFICATION_TYPE: dict[NotificationType, str] = {
    NotificationType.POLICY_REMINDER_3_DAY: "AcknowledgementDue",
    NotificationType.POLICY_REMINDER_1_DAY: "AcknowledgementDue",
    NotificationType.POLICY_OVERDUE: "ComplianceAlert",
    NotificationType.MANAGER_OVERDUE_ALERT: "ComplianceAlert",
    NotificationType.TASK_REMINDER: "TaskDue",
    NotificationType.TASK_ESCALATION: "TaskOverdue",
    NotificationType.APPROVAL_REMINDER: "ApprovalRequired",
    NotificationType.APPROVAL_OVERDUE: "ApprovalRequired",
}

_MARKUP_RE = re.compile(r"<[^>]*>")


def priority_for(notification_type: str) -> NotificationPriority:
    """通知类型 -> 优先级，未知类型为 Low"""
    return NOTIFICATION_PRIORITY.get(notification_type, NotificationPriority.LOW)


def category_for(notification_type: str) -> NotificationCategory:
    """通知类型 -> 分类，未知类型为 Info"""
    return NOTIFICATION_CATEGORY.get(notification_type, NotificationCategory.INFO)


def hub_type_for(notification_type: str) -> str:
    """通知类型 -> 跨系统通知类型，未知类型为 SystemAlert"""
    return HUB_NOTIFICATION_TYPE.get(notification_type, "SystemAlert")


def render(notification_type: NotificationType, context: TemplateContext) -> tuple[str, str]:
    """渲染主题与正文

    Returns:
        (subject, body)
    """
    values = context.model_dump()
    subject = _SUBJECTS[notification_type].format(**values)
    body = _BODIES[notification_type].format(**values)
    return subject, body.replace("  ", " ").strip()


def summarize_for_secondary(body: str) -> str:
    """二级通道正文：去除标记并截断"""
    return _MARKUP_RE.sub("", body)[:SECONDARY_BODY_MAX_CHARS]
