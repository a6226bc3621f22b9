"""
외부 I/O 어댑터 (SQLite, Slack)

core는 Protocol(INotifier)에만 의존하므로 테스트에서 Mock으로 교체 가능.
"""

from adapters.interfaces import INotifier

__all__ = ["INotifier"]
