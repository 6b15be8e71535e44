"""Data models shared by the sync core, gateway and configuration."""
