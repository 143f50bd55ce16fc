"""authx - user account service: registration, login and profile lookup."""
