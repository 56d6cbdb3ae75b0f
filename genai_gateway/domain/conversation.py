from typing import Iterable, Iterator, Optional, Tuple

from .models import Message


class Conversation:
    """只追加的会话历史，由单个 ChatSession 独占。"""

    def __init__(self, messages: Optional[Iterable[Message]] = None):
        self._messages = list(messages or [])

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def snapshot(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
