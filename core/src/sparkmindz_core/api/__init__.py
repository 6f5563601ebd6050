"""JSON API: login, check-auth, logout."""
