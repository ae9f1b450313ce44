"""Client and provider identity: registration, login, recovery and sessions."""
