"""
Request-scoped context.

Carries who is calling and the credential to forward on outbound calls.
Built once per inbound request and passed explicitly down the call chain.
"""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    actor_id: uuid.UUID | None = None
    authorization: str | None = None      # raw "Bearer ..." header value

    @property
    def is_authenticated(self) -> bool:
        return self.actor_id is not None

    def outbound_headers(self) -> dict[str, str]:
        if self.authorization and self.authorization.strip():
            return {"Authorization": self.authorization}
        return {}

