"""
Configuration for SnakeSniper.

Everything is read from the environment (or a .env file) once, when the
dataclasses are built. Components get the config handed to them; nothing
reaches back into os.environ while the loop is running.
"""

import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()

DEFAULT_WINNING_POSITIONS = frozenset({4, 14, 18, 24, 34, 42, 44, 48, 49})


@dataclass
class WalletConfig:
    private_key: str = os.getenv("SOLANA_PRIVATE_KEY", "")
    # Only used when no private key is configured (simulation runs)
    wallet_address: str = os.getenv("WALLET_ADDRESS", "")


@dataclass
class GameConfig:
    game_url: str = os.getenv("GAME_URL", "https://snakes.sendarcade.fun/api/actions/game")
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))


@dataclass
class SolanaConfig:
    rpc_url: str = os.getenv("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com")


@dataclass
class TimingConfig:
    poll_interval: float = float(os.getenv("POLL_INTERVAL_SECONDS", "5"))
    cooldown: float = float(os.getenv("COOLDOWN_SECONDS", "10"))
    fetch_attempts: int = int(os.getenv("FETCH_ATTEMPTS", "3"))
    fetch_retry_delay: float = float(os.getenv("FETCH_RETRY_DELAY_SECONDS", "2"))
    # Lookups of an unconfirmed claim before it is written off as expired
    max_claim_rechecks: int = int(os.getenv("MAX_CLAIM_RECHECKS", "30"))


@dataclass
class AgentConfig:
    wallet: WalletConfig = field(default_factory=WalletConfig)
    game: GameConfig = field(default_factory=GameConfig)
    solana: SolanaConfig = field(default_factory=SolanaConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    winning_positions: frozenset = DEFAULT_WINNING_POSITIONS

    def __post_init__(self):
        self.winning_positions = frozenset(self.winning_positions)

    @property
    def has_signer(self) -> bool:
        return bool(self.wallet.private_key)
