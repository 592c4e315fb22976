"""
Reminder message rendering.

Turns the time left before a task's deadline into one of three urgency
categories and renders it as e-mail (subject + HTML) or chat text.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from html import escape

import pytz


class Urgency(str, Enum):
    """How close a task is to its deadline."""
    OVERDUE = "overdue"
    DUE_WITHIN_HOUR = "due_within_hour"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class UrgencyContext:
    """Everything the renderers need; hours and minutes are floored and negative when overdue."""
    urgency: Urgency
    hours_until_due: int
    minutes_until_due: int
    student_name: str
    task_name: str
    course_name: str
    due_date: datetime  # naive UTC

    @classmethod
    def build(cls, due_date: datetime, now: datetime, student_name: str, task_name: str, course_name: str) -> "UrgencyContext":
        """Compute the urgency category for a deadline as seen at `now`."""
        remaining = due_date - now
        hours = remaining // timedelta(hours=1)
        minutes = remaining // timedelta(minutes=1)
        if hours < 0:
            urgency = Urgency.OVERDUE
        elif hours == 0:
            urgency = Urgency.DUE_WITHIN_HOUR
        else:
            urgency = Urgency.UPCOMING
        return cls(
            urgency=urgency,
            hours_until_due=hours,
            minutes_until_due=minutes,
            student_name=student_name,
            task_name=task_name,
            course_name=course_name,
            due_date=due_date,
        )

    @property
    def urgency_text(self) -> str:
        if self.urgency is Urgency.OVERDUE:
            return f"OVERDUE by {abs(self.hours_until_due)} hours"
        if self.urgency is Urgency.DUE_WITHIN_HOUR:
            return f"Due in {self.minutes_until_due} minutes"
        return f"Due in {self.hours_until_due} hours"


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    body: str


class MessageBuilder:
    """Renders urgency contexts for each channel kind."""

    def __init__(self, display_timezone: str = "UTC"):
        self.tz = pytz.timezone(display_timezone)

    def format_due_date(self, due_date: datetime) -> str:
        """Due timestamp in the display timezone, e.g. '2026-10-19 23:59 WIB'."""
        local = pytz.utc.localize(due_date).astimezone(self.tz)
        return local.strftime("%Y-%m-%d %H:%M %Z")

    def subject(self, context: UrgencyContext) -> str:
        if context.urgency is Urgency.OVERDUE:
            return f"🚨 OVERDUE: {context.task_name} - {abs(context.hours_until_due)} hours overdue"
        if context.urgency is Urgency.DUE_WITHIN_HOUR:
            return f"⏰ URGENT: {context.task_name} - Due in {context.minutes_until_due} minutes"
        return f"📝 Reminder: {context.task_name} - Due in {context.hours_until_due} hours"

    def render_email(self, context: UrgencyContext) -> RenderedMessage:
        """Subject line plus an HTML body."""
        body = f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Task Reminder</title></head>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <h1 style="background-color: #dc2626; color: white; padding: 20px; text-align: center;">📚 Task Reminder</h1>
  <p>Hi <strong>{escape(context.student_name)}</strong>!</p>
  <p>This is a friendly reminder about your task:</p>
  <div style="border-left: 4px solid #dc2626; padding: 20px;">
    <div style="font-size: 20px; font-weight: bold; color: #dc2626;">{escape(context.task_name)}</div>
    <div><strong>Course:</strong> {escape(context.course_name)}</div>
    <div><strong>Due Date:</strong> {self.format_due_date(context.due_date)}</div>
    <div style="font-weight: bold; color: #dc2626;">⏰ {context.urgency_text}</div>
  </div>
  <p>Don't forget to complete your task on time. Good luck!</p>
  <p>Best regards,<br>Your LMS Team</p>
  <p style="color: #6b7280; font-size: 14px;">This is an automated reminder from your LMS system.</p>
</body>
</html>"""
        return RenderedMessage(subject=self.subject(context), body=body)

    def render_whatsapp(self, context: UrgencyContext) -> RenderedMessage:
        """Plain chat text using WhatsApp's *bold* markup."""
        body = "\n".join([
            "🔔 *Task Reminder*",
            "",
            f"Hi {context.student_name}!",
            "",
            f"📝 *{context.task_name}*",
            f"📚 Course: {context.course_name}",
            f"⏰ Due: {self.format_due_date(context.due_date)}",
            f"🚨 {context.urgency_text}",
            "",
            "Don't forget to complete your task on time. Good luck!",
            "",
            "Best regards,",
            "Your LMS Team",
        ])
        return RenderedMessage(subject=self.subject(context), body=body)
