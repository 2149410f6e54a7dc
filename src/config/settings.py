"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use ZETTELPRESENTER_ prefix (e.g., ZETTELPRESENTER_AUTHOR="Jane Doe").

Settings can also be loaded from a .env file in the project root.
"""

from typing import Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use ZETTELPRESENTER_ prefix.

    Examples:
        ZETTELPRESENTER_ZETTELSTORE_URL=http://zettel.example.org:23123
        ZETTELPRESENTER_LISTEN_ADDRESS=:8080
        ZETTELPRESENTER_COMPLETION_TIMEOUT=5
    """

    model_config = SettingsConfigDict(
        env_prefix="ZETTELPRESENTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Zettelstore access
    zettelstore_url: str = Field(
        default="http://127.0.0.1:23123",
        description="Base URL of the Zettelstore",
    )

    with_auth: bool = Field(
        default=False,
        description="Zettelstore needs authentication",
    )

    username: str = Field(default="", description="User name for authentication")

    password: str = Field(default="", description="Password for authentication")

    http_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for a single Zettelstore request",
    )

    # Server configuration
    listen_address: str = Field(
        default=":23120",
        description="Listen address of the presenter, 'host:port' or ':port'",
    )

    completion_timeout: float = Field(
        default=30.0,
        description="Seconds a request may spend collecting linked zettel and images",
    )

    verbosity: int = Field(default=1, description="Default logging verbosity (0-3)")

    # Presenter defaults, overridden by the configuration zettel
    slideset_role: str = Field(
        default="slideset",
        description="Zettel role that marks a slide set",
    )

    author: str = Field(default="", description="Fallback author of slide sets")

    copyright: str = Field(default="", description="Fallback copyright of slide sets")

    license: str = Field(default="", description="Fallback license of slide sets")

    # Rendering
    pygments_style: str = Field(
        default="default",
        description="Pygments style for highlighted code blocks",
    )

    slidy_url: str = Field(
        default="https://www.w3.org/Talks/Tools/Slidy2",
        description="Base URL of the Slidy2 styles/ and scripts/ directories",
    )

    revealjs_url: str = Field(
        default="https://cdn.jsdelivr.net/npm/reveal.js@4",
        description="Base URL of the reveal.js distribution",
    )

    mermaid_url: str = Field(
        default="https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js",
        description="URL of the mermaid script",
    )

    def listenAddress_split(self, address: str = "") -> Tuple[str, int]:
        """
        Split a listen address into host and port.

        Args:
            address: Address to split; defaults to listen_address

        Returns:
            (host, port); an empty host means all interfaces

        Raises:
            ValueError: If the port is missing or not a number

        Example:
            >>> settings = AppSettings()
            >>> settings.listenAddress_split(":23120")
            ('0.0.0.0', 23120)
        """
        address = address or self.listen_address
        host, sep, port = address.rpartition(":")
        if not sep:
            raise ValueError(f"Listen address without port: {address!r}")
        return (host or "0.0.0.0", int(port))


# Singleton instance - import this in your code
appsettings = AppSettings()
