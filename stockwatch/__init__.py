"""Stockwatch backend: per-user stock watchlists enriched with live market data."""
