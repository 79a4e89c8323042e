from abc import ABC, abstractmethod


class BaseNotifier(ABC):
    """Outbound side of the chat transport."""

    @abstractmethod
    async def send_message(self, user_id: int, text: str) -> None:
        """Send a plain text message to the user."""

    @abstractmethod
    async def send_document(self, user_id: int, file_name: str, content: bytes) -> None:
        """Send a file to the user."""

    @abstractmethod
    async def update_progress(self, user_id: int, text: str) -> None:
        """Show (or edit in place) the user's progress message for the running job."""
