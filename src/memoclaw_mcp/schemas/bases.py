"""
Base Schema Models

Foundation classes shared by every wire model in the package.

Core Classes:
    - CanonicalModel: Pydantic base with deterministic (sorted, compact) JSON
    - X402Model: CanonicalModel that speaks the x402 camelCase wire format

Dependencies:
    - pydantic: For data validation and serialization
"""

import base64
import json
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Produces a deterministic JSON representation (sorted keys, no extra
    whitespace) so that encoded headers are stable for identical payloads.

    Example:
        class MyModel(CanonicalModel):
            name: str
            value: int

        MyModel(name="test", value=123).to_canonical_json()
        # '{"name":"test","value":123}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to a canonical JSON string.

        ``model_dump(mode="json", by_alias=True, exclude_none=True)`` turns the
        model into plain wire types first; ``json.dumps`` then sorts keys and
        drops whitespace.

        Returns:
            str: JSON string with sorted keys and compact separators.
        """
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert model to its wire dictionary (aliases applied, ``None`` dropped).

        Returns:
            Dict[str, Any]: Dictionary with all populated fields.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class X402Model(CanonicalModel):
    """
    Base class for x402 protocol models.

    Fields are declared in snake_case and serialized in camelCase
    (``max_timeout_seconds`` <-> ``maxTimeoutSeconds``). Either spelling is
    accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_base64(self) -> str:
        """Encode the canonical JSON form as standard base64, as x402 headers carry it."""
        return base64.b64encode(self.to_canonical_json().encode("utf-8")).decode("ascii")
