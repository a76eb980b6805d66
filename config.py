"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return [o.strip() for o in origins.split(",") if o.strip()]


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class GameConfig:
    """Table defaults for new sessions."""

    num_decks: int = field(default_factory=lambda: int(os.getenv("BLACKJACK_DECKS", "8")))
    reshuffle_threshold: float = 0.25
    blackjack_payout: float = 1.5
    starting_chips: int = field(
        default_factory=lambda: int(os.getenv("BLACKJACK_STARTING_CHIPS", "1000"))
    )
    default_bet: int = 10
    bet_amounts: tuple[int, ...] = (5, 10, 25, 50, 100, 500)

    def __post_init__(self) -> None:
        """Validate table settings."""
        if self.num_decks < 1:
            raise ValueError("num_decks must be at least 1")
        if not 0.0 <= self.reshuffle_threshold < 1.0:
            raise ValueError("reshuffle_threshold must be in [0, 1)")
        if self.blackjack_payout < 1.0:
            raise ValueError("blackjack_payout must be at least 1.0")


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    session_ttl: int = 3600  # Session timeout in seconds

    game: GameConfig = field(default_factory=GameConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)


# Global configuration instance
config = AppConfig()
