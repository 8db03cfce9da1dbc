"""Wallet - signing identities resolved from configuration."""
