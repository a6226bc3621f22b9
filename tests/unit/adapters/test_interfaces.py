"""
어댑터 Protocol 준수 테스트
"""

from adapters.interfaces import INotifier
from adapters.mock.notifier import MockNotifier
from adapters.slack.notifier import SlackNotifier


class TestINotifier:
    """INotifier 구현체 확인"""

    def test_mock_notifier(self) -> None:
        assert isinstance(MockNotifier(), INotifier)

    def test_slack_notifier(self) -> None:
        assert isinstance(SlackNotifier(webhook_url="https://hooks.slack.com/test"), INotifier)

    def test_plain_object_is_not_notifier(self) -> None:
        assert not isinstance(object(), INotifier)
