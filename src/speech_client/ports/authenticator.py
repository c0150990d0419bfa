from typing import Protocol

Metadata = list[tuple[str, str]]


class AuthenticatorPort(Protocol):
    async def metadata(self) -> Metadata: ...
