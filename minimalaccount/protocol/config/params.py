# MIT License
# Copyright (c) 2025 Hashborn

import os
from typing import Dict, Optional

ENTRY_POINT_V07 = "0x0000000071727De22E5E9d8BAf0edAc6f37da032"
LOCAL_ENTRY_POINT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

NETWORK_ENV_VAR = "MINACCT_NETWORK"
DEFAULT_PREFUND_GAS_LIMIT = 100_000

class NetworkConfig:
    def __init__(self,
                 network_id: str,
                 chain_id: int,
                 entry_point: str,
                 # Gas allowance for the prefund transfer to the entry point (None = unbounded)
                 prefund_gas_limit: Optional[int] = DEFAULT_PREFUND_GAS_LIMIT,
                 # Defaults used when assembling user operations
                 default_call_gas_limit: int = 500_000,
                 default_verification_gas_limit: int = 150_000,
                 default_pre_verification_gas: int = 50_000,
                 default_max_fee_per_gas: int = 1_000_000_000,  # 1 Gwei
                 default_max_priority_fee_per_gas: int = 1_000_000_000,
                 # Local network deterministic key (hex string)
                 local_priv_key: Optional[str] = None):
        self.network_id = network_id
        self.chain_id = chain_id
        self.entry_point = entry_point
        self.prefund_gas_limit = prefund_gas_limit
        self.default_call_gas_limit = default_call_gas_limit
        self.default_verification_gas_limit = default_verification_gas_limit
        self.default_pre_verification_gas = default_pre_verification_gas
        self.default_max_fee_per_gas = default_max_fee_per_gas
        self.default_max_priority_fee_per_gas = default_max_priority_fee_per_gas
        self.local_priv_key = local_priv_key

    def to_dict(self) -> Dict[str, object]:
        return {k: v for k, v in vars(self).items() if k != "local_priv_key"}

NETWORKS: Dict[str, NetworkConfig] = {
    "local": NetworkConfig(
        network_id="local",
        chain_id=31337,
        entry_point=LOCAL_ENTRY_POINT,
        # Well-known first anvil account
        local_priv_key="ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
    ),
    "sepolia": NetworkConfig(
        network_id="sepolia",
        chain_id=11155111,
        entry_point=ENTRY_POINT_V07,
    ),
    "arbitrum": NetworkConfig(
        network_id="arbitrum",
        chain_id=42161,
        entry_point=ENTRY_POINT_V07,
        default_max_fee_per_gas=100_000_000,  # 0.1 Gwei
        default_max_priority_fee_per_gas=0,
    ),
}

def get_network(name: str) -> NetworkConfig:
    if name not in NETWORKS:
        raise ValueError(f"Unknown network '{name}' (known: {', '.join(sorted(NETWORKS))})")
    return NETWORKS[name]

# Default to local unless overridden by environment
CURRENT_NETWORK = get_network(os.environ.get(NETWORK_ENV_VAR, "local"))
