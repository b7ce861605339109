"""Chat notifications."""

from rate_spread_monitor.notify.slack import DeliveryResult, SlackNotifier
from rate_spread_monitor.notify.message import (
    format_buy_alert,
    format_failure_message,
    format_report_message,
    format_test_message,
    send_buy_alert,
    send_report_alert,
)

__all__ = [
    "DeliveryResult",
    "SlackNotifier",
    "format_buy_alert",
    "send_buy_alert",
    "format_failure_message",
    "format_report_message",
    "format_test_message",
    "send_report_alert",
]
