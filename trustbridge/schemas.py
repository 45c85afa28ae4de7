"""Request bodies accepted by the JSON API."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class CredentialsIn(BaseModel):
    """Username/password pair for register and login."""

    username: Optional[str] = Field(default=None, description="Username")
    password: Optional[str] = Field(default=None, description="Password")


class TransactionIn(BaseModel):
    """Record upsert; txId is the record key, txData its payload."""

    txId: Optional[str] = Field(default=None, description="Record key")
    txData: Optional[dict[str, Any]] = Field(default=None, description="Record payload")
