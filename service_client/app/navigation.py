"""
Client navigation state.
"""

from typing import List

from shared.logging import get_logger


LOGIN_PATH = "/login"
SESSION_EXPIRED_PATH = "/login?expired=true"


class Navigator:
    """Tracks the current client route and the history that led to it."""

    def __init__(self, initial_path: str = "/"):
        self.current_path = initial_path
        self.history: List[str] = [initial_path]
        self.logger = get_logger("client.navigation")

    @property
    def on_login_page(self) -> bool:
        return self.current_path.split("?", 1)[0] == LOGIN_PATH

    def navigate(self, path: str) -> None:
        if path == self.current_path:
            return
        self.logger.debug("Navigating", from_path=self.current_path, to_path=path)
        self.current_path = path
        self.history.append(path)
