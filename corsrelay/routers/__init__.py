"""HTTP routers: health and relay management."""
