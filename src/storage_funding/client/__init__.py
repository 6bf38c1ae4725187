# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

from storage_funding.client.interface import AccountClient
from storage_funding.client.memory import InMemoryAccountClient

__all__ = ["AccountClient", "InMemoryAccountClient"]
