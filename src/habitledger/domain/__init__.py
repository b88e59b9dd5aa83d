"""Domain layer: repository contracts the services depend on."""
