"""Configuration: typed sections, unified settings with TOML discovery, and logging."""
