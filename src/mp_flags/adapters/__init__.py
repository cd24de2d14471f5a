"""Adapters – optional transports for the shared cache tier and the invalidation bus."""
