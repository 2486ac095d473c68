# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""Pydantic models for the identity REST API."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from personapass.identity.models import IdentityRecord


class IdentityRecordCreate(BaseModel):
    """Request model for storing a finished registration.

    Accepts the camelCase keys the browser client persists as well as
    snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    did: str = Field(..., min_length=1, description="DID minted for the wallet (opaque)")
    wallet_address: str = Field(..., min_length=1, alias="walletAddress", description="Wallet address")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    wallet_type: str = Field("", alias="walletType", description="Connector that produced the binding")
    created_at: str = Field("", alias="createdAt", description="ISO-8601 registration time")
    tx_hash: str = Field("", alias="txHash", description="Registration transaction hash")
    block_height: int = Field(0, ge=0, alias="blockHeight", description="Registration block height")

    def to_record(self) -> IdentityRecord:
        return IdentityRecord(
            did=self.did,
            wallet_address=self.wallet_address,
            first_name=self.first_name,
            last_name=self.last_name,
            wallet_type=self.wallet_type,
            created_at=self.created_at or datetime.now(UTC).isoformat(),
            tx_hash=self.tx_hash,
            block_height=self.block_height,
        )
