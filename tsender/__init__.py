"""TSender batch airdrop transaction orchestration."""

__version__ = "0.1.0"
