"""Registry clients, one package per ecosystem."""
