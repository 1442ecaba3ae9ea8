"""Adapters that connect the core pipeline to feeds, storage and Telegram."""
