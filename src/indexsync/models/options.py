"""Connection options — where an index operation or search is sent."""

from __future__ import annotations

from pydantic import BaseModel, Field

OPTION_KEYS: tuple[str, ...] = ("host", "port", "index", "type", "prefix")


class ConnectionOptions(BaseModel):
    """Search service connection options.

    Every key is optional here; ``ConfigRegistry.resolve()`` merges partial
    options with process-wide defaults and enforces the required ones.
    """

    host: str | None = Field(default=None, description="Search service host, with or without scheme")
    port: int | None = Field(default=None, description="Search service port")
    index: str | None = Field(default=None, description="Index name")
    type: str | None = Field(default=None, description="Document type name")
    prefix: str | None = Field(default=None, description="Index namespace prefix")

    def present(self) -> dict[str, object]:
        """Return only keys holding a non-empty value."""
        return {k: v for k in OPTION_KEYS if (v := getattr(self, k)) not in (None, "")}

    @property
    def base_url(self) -> str:
        """``{host}:{port}``, adding ``http://`` when the host carries no scheme."""
        host = (self.host or "").rstrip("/")
        if "://" not in host:
            host = f"http://{host}"
        return f"{host}:{self.port}"
