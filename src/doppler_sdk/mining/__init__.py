from .hook_miner import compute_hook_init_code_hash, mine_hook_salt
from .token_miner import (
    HookMiningConfig,
    compute_token_init_code_hash,
    mine_token_address,
    normalize_prefix,
)

__all__ = (
    "HookMiningConfig",
    "compute_hook_init_code_hash",
    "compute_token_init_code_hash",
    "mine_hook_salt",
    "mine_token_address",
    "normalize_prefix",
)
