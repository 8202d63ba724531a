"""EmailProvider protocol. Services depend on this, not the concrete implementation.

Both methods return False (or raise) when the message could not be handed
to the mail service; AuthService turns either outcome into DeliveryFailedError.
"""

from typing import Optional, Protocol


class EmailProvider(Protocol):
    async def send_activation_email(
        self, email: str, user_name: Optional[str], nonce: str, link: str
    ) -> bool: ...

    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], raw_token: str, link: str
    ) -> bool: ...
