"""
테스트용 어댑터

실제 알림 대신 메모리에 기록하는 Notifier.
"""

from adapters.mock.notifier import MockNotifier, SentAlert

__all__ = [
    "MockNotifier",
    "SentAlert",
]
