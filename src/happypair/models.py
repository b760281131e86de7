"""Canonical Pydantic models shared across happypair.

The models fall into three groups:

**Wire models** -- what the Happy server sends back from
``POST /v1/auth/request``: :class:`AuthRequestStatus`.

**Credential models** -- the two persisted credential shapes,
:class:`LegacyCredentials` and :class:`DataKeyCredentials`, joined into the
:data:`Credentials` discriminated union. The ``type`` tag selects the
variant on load, and both models forbid extra fields so a value can never
carry fields from both shapes.

**Local state** -- :class:`Settings` (machine identity) and the
:class:`AuthMethod` choice made by the user.

Binary fields are ``bytes`` in Python and standard base64 strings in JSON.
"""

from __future__ import annotations

import base64
import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    TypeAdapter,
)


def _decode_base64_field(value: Any) -> Any:
    """Accept base64 text for byte fields loaded from JSON."""
    if isinstance(value, str):
        return base64.b64decode(value, validate=True)
    return value


Key32 = Annotated[
    bytes,
    BeforeValidator(_decode_base64_field),
    PlainSerializer(
        lambda value: base64.b64encode(value).decode("ascii"),
        return_type=str,
        when_used="json",
    ),
    Field(min_length=32, max_length=32),
]
"""A 32-byte key, serialised as base64 in JSON."""


# --- Auth method ---


class AuthMethod(str, enum.Enum):
    """The approval surface picked by the user."""

    MOBILE = "mobile"
    WEB = "web"


# --- Wire model ---


class AuthRequestStatus(BaseModel):
    """Body of a 200 response from ``POST /v1/auth/request``.

    ``token`` and ``response`` are only present once the request has been
    approved. Unknown keys are ignored so the server can grow the payload.
    """

    model_config = ConfigDict(extra="ignore")

    state: str = Field(description="Server-side request state, e.g. 'pending' or 'authorized'")
    token: Optional[str] = Field(default=None, description="Opaque server-issued token")
    response: Optional[str] = Field(
        default=None, description="Base64 encrypted credential bundle"
    )

    @property
    def is_authorized(self) -> bool:
        """Whether the other device approved the request."""
        return self.state == "authorized"


# --- Credentials ---


class LegacyCredentials(BaseModel):
    """The older credential shape: one 32-byte shared secret."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["legacy"] = "legacy"
    secret: Key32
    token: str


class DataKeyCredentials(BaseModel):
    """The newer credential shape.

    ``public_key`` comes from the approving device; ``machine_key`` is
    generated locally and never derived from the decrypted payload.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["dataKey"] = "dataKey"
    public_key: Key32
    machine_key: Key32
    token: str


Credentials = Annotated[
    Union[LegacyCredentials, DataKeyCredentials],
    Field(discriminator="type"),
]

credentials_adapter: TypeAdapter[Credentials] = TypeAdapter(Credentials)
"""Validates and dumps either credential variant by its ``type`` tag."""


# --- Local state ---


class Settings(BaseModel):
    """Persisted per-user settings.

    Only ``machine_id`` is interpreted here; any other keys written by
    other tools are preserved in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    machine_id: Optional[str] = Field(
        default=None, description="Random identifier of this machine"
    )
