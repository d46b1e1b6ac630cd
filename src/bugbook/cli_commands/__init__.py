"""Click command modules, each exposing ``register(cli)``."""
