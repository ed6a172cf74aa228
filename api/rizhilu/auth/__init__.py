"""Authentication: registration, login, JWT access tokens and profiles."""
