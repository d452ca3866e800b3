"""API — fonctions HTTP Kisan Sathi (routes + schémas)."""
