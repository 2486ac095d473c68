# SPDX-License-Identifier: MIT
# Copyright (c) 2026 PersonaPass Contributors

"""PersonaPass wallet identity - wallet-to-DID resolution and routing.

A connected wallet is looked up in a local, transitional identity cache and
the caller is routed to either the "create identity" flow or the "continue
as existing identity" flow.

Architecture:
  Wallet provider (connected address or none)
    → IdentityCache (wallet address → DID record, storage-backed)
    → AuthRouter (routing verdict per call)
    → WalletDIDRecognition (async load/refresh/error lifecycle for UI code)

The cache is never authoritative. It bridges the gap until a chain-side DID
registry exists and can be dropped in behind the same interfaces.
"""

__version__ = "0.1.0"
