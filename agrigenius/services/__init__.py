"""Domain services: gateways, periodic controllers and the chat assistant."""
