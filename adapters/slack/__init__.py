"""
Slack Webhook 알림 어댑터
"""

from adapters.slack.notifier import SlackNotifier

__all__ = ["SlackNotifier"]
