import os
from dataclasses import dataclass
from typing import Optional

BALLOT_TRACEBACK_LIMIT: Optional[int]

_tb_limit_str = os.environ.get("BALLOT_TRACEBACK_LIMIT")
if _tb_limit_str is not None:
    BALLOT_TRACEBACK_LIMIT = int(_tb_limit_str)
else:
    BALLOT_TRACEBACK_LIMIT = None

DEFAULT_NUM_ACCOUNTS = int(os.environ.get("BALLOT_NUM_ACCOUNTS", "10"))
DEFAULT_SEED = os.environ.get("BALLOT_SEED", "riggedballot")

# 100 ether per account
DEFAULT_INITIAL_BALANCE = 10**20


@dataclass
class Settings:
    num_accounts: int = DEFAULT_NUM_ACCOUNTS
    initial_balance: int = DEFAULT_INITIAL_BALANCE
    seed: str = DEFAULT_SEED

    def __post_init__(self):
        # sanity check inputs
        assert isinstance(self.num_accounts, int) and self.num_accounts > 0
        assert isinstance(self.initial_balance, int) and self.initial_balance >= 0
        assert isinstance(self.seed, str)
