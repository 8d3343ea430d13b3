"""Arrow-key input sent after each capture, e.g. to turn a page."""

from enum import Enum

from ..logging import get_logger

logger = get_logger(__name__)


class ArrowKey(Enum):
    """Arrow keys, valued by the key codes stored in settings."""
    LEFT = 123
    RIGHT = 124
    DOWN = 125
    UP = 126

    @property
    def key_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "ArrowKey":
        try:
            return cls[name.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown arrow key: {name}") from exc


class KeySendError(Exception):
    """Raised when a key press cannot be delivered."""


class KeySender:
    """Presses keys on the active window through pyautogui."""

    def press(self, key: ArrowKey) -> None:
        try:
            # pyautogui needs a display at import time
            import pyautogui

            pyautogui.press(key.key_name)
        except Exception as exc:
            raise KeySendError(f"Failed to press {key.key_name}: {exc}") from exc

        logger.debug(f"Pressed {key.key_name}")
